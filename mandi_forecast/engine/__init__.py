from mandi_forecast.engine.collector import CollectionReport, DataCollector
from mandi_forecast.engine.scheduler import CycleResult, CycleScheduler, SchedulerState, Ticker
from mandi_forecast.engine.service import ForecastContext, ForecastService, build_service

__all__ = [
    "CollectionReport", "DataCollector", "CycleResult", "CycleScheduler", "SchedulerState",
    "Ticker", "ForecastContext", "ForecastService", "build_service",
]
