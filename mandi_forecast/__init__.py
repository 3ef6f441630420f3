"""
Mandi commodity price forecasting core.

Collects market price observations, keeps a bounded training corpus,
refits a linear price model on a schedule and serves forecasts.
"""
from mandi_forecast.engine.service import ForecastContext, ForecastService, build_service
from mandi_forecast.errors import (
    ForecastError,
    ModelUnavailable,
    NoCurrentData,
    PersistenceFailure,
    ProviderUnavailable,
)

__version__ = "1.0.0"

__all__ = [
    "ForecastContext", "ForecastService", "build_service",
    "ForecastError", "ModelUnavailable", "NoCurrentData", "PersistenceFailure", "ProviderUnavailable",
]
