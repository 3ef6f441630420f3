"""
Runtime service container and the in-process surface used by the
surrounding application (HTTP routes, CLI).
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from loguru import logger
from sqlalchemy.engine import Engine

from mandi_forecast.ai.corpus import TrainingCorpus
from mandi_forecast.ai.inference import PricePredictor
from mandi_forecast.ai.model import PriceInsights, PriceModel, PricePrediction
from mandi_forecast.ai.model_store import ModelStore
from mandi_forecast.ai.trainer import ModelTrainer
from mandi_forecast.config import Settings, settings as default_settings
from mandi_forecast.database.blob_store import BlobStore
from mandi_forecast.database.connection import create_db_engine, make_session_factory
from mandi_forecast.database.migrations import initialize_database
from mandi_forecast.engine.collector import CollectionReport, DataCollector
from mandi_forecast.engine.scheduler import CycleResult, CycleScheduler
from mandi_forecast.market.catalog import (
    COLLECTION_STATES,
    COMMODITY_INDEX,
    COMPREHENSIVE_COMMODITIES,
    STATE_INDEX,
    build_catalog,
)
from mandi_forecast.market.provider import MarketDataProvider, build_provider


@dataclass
class ForecastContext:
    """Everything a collection/training/prediction call needs, passed explicitly."""

    settings: Settings
    blob_store: BlobStore
    corpus: TrainingCorpus
    model_store: ModelStore
    provider: MarketDataProvider
    clock: Callable[[], datetime] = datetime.now
    engine: Optional[Engine] = field(default=None, repr=False)

    @classmethod
    def from_settings(
        cls,
        app_settings: Optional[Settings] = None,
        provider: Optional[MarketDataProvider] = None,
        engine: Optional[Engine] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ForecastContext":
        app_settings = app_settings or default_settings
        engine = engine or create_db_engine(app_settings.storage)
        initialize_database(engine)
        blob_store = BlobStore(make_session_factory(engine))
        return cls(
            settings=app_settings,
            blob_store=blob_store,
            corpus=TrainingCorpus(blob_store, capacity=app_settings.training.corpus_capacity),
            model_store=ModelStore(blob_store),
            provider=provider or build_provider(app_settings.provider),
            clock=clock,
            engine=engine,
        )


class ForecastService:
    def __init__(self, context: ForecastContext, sleep: Callable[[float], None] = time.sleep) -> None:
        self.context = context
        cfg = context.settings
        self.collector = DataCollector(
            provider=context.provider,
            corpus=context.corpus,
            catalog=build_catalog(),
            request_delay=cfg.provider.request_delay,
            clock=context.clock,
            sleep=sleep,
        )
        self.trainer = ModelTrainer(cfg.training, context.model_store)
        self.predictor = PricePredictor(context.provider, context.model_store, clock=context.clock)
        self.scheduler = CycleScheduler(
            collector=self.collector,
            trainer=self.trainer,
            corpus=context.corpus,
            interval_seconds=cfg.scheduler.collect_interval_seconds,
            run_on_start=cfg.scheduler.run_on_start,
        )

    # ------------------------------------------------------------------
    # Collection and training
    # ------------------------------------------------------------------

    def collect_once(self) -> CycleResult:
        """One scheduled-style cycle: collect, then train once the corpus is big enough."""
        return self.scheduler.run_cycle()

    def collect(self) -> CollectionReport:
        return self.scheduler.collect()

    def maybe_train(self) -> Optional[PriceModel]:
        return self.scheduler.maybe_train()

    def train_model(self) -> Optional[PriceModel]:
        return self.scheduler.train_now()

    def manual_train(self) -> CycleResult:
        return self.scheduler.manual_train()

    def train_comprehensive(self) -> Dict[str, Any]:
        """Collect the extended crop list for both focus states, then train."""
        catalog = build_catalog(COMPREHENSIVE_COMMODITIES, COLLECTION_STATES)
        started = time.monotonic()
        logger.info(
            f"Comprehensive training on {len(COMPREHENSIVE_COMMODITIES)} crops "
            f"across {len(COLLECTION_STATES)} states"
        )
        result = self.scheduler.manual_train(
            catalog=catalog,
            request_delay=self.context.settings.provider.comprehensive_request_delay,
        )
        report = result.report
        stats = {
            "totalCrops": len(COMPREHENSIVE_COMMODITIES),
            "totalDataPoints": report.points_collected,
            "successfulCrops": report.successful_pairs,
            "failedCrops": len(report.failed_pairs),
            "pointsByState": dict(report.points_by_state),
            "trainingResults": result.model.to_dict() if result.model else None,
        }
        duration = round(time.monotonic() - started)
        if report.points_collected == 0:
            return {"success": False, "error": "No data could be collected for training", "stats": stats}
        return {
            "success": True,
            "stats": stats,
            "duration": duration,
            "message": (
                f"Successfully trained on {report.points_collected} data points "
                f"from {report.successful_pairs} crops"
            ),
        }

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(
        self,
        commodity: str,
        state: str,
        extra_features: Optional[Dict[str, Any]] = None,
    ) -> PricePrediction:
        return self.predictor.predict(commodity, state, extra_features)

    def price_insights(self, commodity: str, state: str) -> PriceInsights:
        return self.predictor.price_insights(commodity, state)

    # ------------------------------------------------------------------
    # Status and lifecycle
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        model = self.context.model_store.load()
        cfg = self.context.settings
        return {
            "dataCollected": self.context.corpus.size(),
            "minimumRequired": cfg.training.min_data_points,
            "modelTrained": model is not None,
            "lastModelTraining": model.timestamp if model else None,
            "modelPerformance": model.metrics.to_dict() if model else None,
            "dataCollectionInterval": cfg.scheduler.collect_interval_minutes,
            "supportedCommodities": list(COMMODITY_INDEX),
            "supportedStates": list(STATE_INDEX),
            "schedulerState": self.scheduler.state.value,
            "schedulerRunning": self.scheduler.is_running,
        }

    def start(self) -> None:
        self.scheduler.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self.scheduler.stop(timeout=timeout)
        shutdown = getattr(self.context.provider, "shutdown", None)
        if callable(shutdown):
            shutdown()
        if self.context.engine is not None:
            self.context.engine.dispose()


def build_service(
    app_settings: Optional[Settings] = None,
    provider: Optional[MarketDataProvider] = None,
    engine: Optional[Engine] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> ForecastService:
    context = ForecastContext.from_settings(app_settings, provider=provider, engine=engine, clock=clock)
    return ForecastService(context)
