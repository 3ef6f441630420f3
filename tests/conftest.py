"""
Shared test fixtures: in-memory SQLite blob store, fake market provider,
synthetic corpus helpers.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from mandi_forecast.ai.corpus import TrainingCorpus
from mandi_forecast.ai.features import FeaturePoint, encode_observations
from mandi_forecast.ai.model_store import ModelStore
from mandi_forecast.config import ProviderConfig, SchedulerConfig, Settings, StorageConfig, TrainingConfig
from mandi_forecast.database.blob_store import BlobStore
from mandi_forecast.database.connection import make_session_factory
from mandi_forecast.database.models import Base
from mandi_forecast.engine.service import ForecastContext, ForecastService
from mandi_forecast.market.provider import MarketDataProvider, MarketQuote

# A Wednesday in July: seasonality 6, day_of_week 3.
FIXED_NOW = datetime(2026, 7, 15, 10, 30, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------

class FakeProvider(MarketDataProvider):
    """Serves canned quotes per pair; raises for pairs listed in `failing`."""

    name = "Fake"

    def __init__(
        self,
        quotes: Optional[Dict[Tuple[str, str], List[MarketQuote]]] = None,
        default: Optional[List[MarketQuote]] = None,
        failing: Iterable[Tuple[str, str]] = (),
    ) -> None:
        self.quotes = dict(quotes or {})
        self.default = list(default or [])
        self.failing = set(failing)
        self.calls: List[Tuple[str, str]] = []

    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        self.calls.append((commodity, state))
        if (commodity, state) in self.failing:
            raise RuntimeError(f"provider down for {commodity}/{state}")
        return list(self.quotes.get((commodity, state), self.default))


def make_quote(modal: float, low: Optional[float] = None, high: Optional[float] = None,
               arrivals: Optional[float] = 200.0, market: str = "Pune APMC") -> MarketQuote:
    return MarketQuote(
        market=market,
        modal_price=modal,
        min_price=low,
        max_price=high,
        arrivals=arrivals,
        date="2020-01-01",
        source="test",
    )


def make_quotes(n: int, base: float = 2350.0, noise: float = 25.0, seed: int = 42) -> List[MarketQuote]:
    """Quotes whose min/max sit 50-70 below/above a noisy modal price."""
    rng = np.random.default_rng(seed)
    quotes = []
    for i in range(n):
        modal = base + rng.normal(0.0, noise)
        quotes.append(make_quote(
            modal=float(modal),
            low=float(modal - rng.uniform(50.0, 70.0)),
            high=float(modal + rng.uniform(50.0, 70.0)),
            arrivals=float(rng.integers(100, 400)),
            market=f"Market {i % 3}",
        ))
    return quotes


def make_points(n: int, commodity: str = "wheat", state: str = "Maharashtra",
                base: float = 2350.0, seed: int = 42, now: datetime = FIXED_NOW) -> List[FeaturePoint]:
    return encode_observations(make_quotes(n, base=base, seed=seed), commodity, state, now)


def make_settings(min_data_points: int = 100, capacity: int = 10_000,
                  learning_rate: float = 1e-4, epochs: int = 1000) -> Settings:
    return Settings(
        storage=StorageConfig(database_url="sqlite://"),
        provider=ProviderConfig(request_delay=0.0, comprehensive_request_delay=0.0, call_timeout=5.0),
        training=TrainingConfig(
            corpus_capacity=capacity,
            min_data_points=min_data_points,
            learning_rate=learning_rate,
            epochs=epochs,
        ),
        scheduler=SchedulerConfig(collect_interval_minutes=30.0, run_on_start=True),
    )


# ---------------------------------------------------------------------------
# Database fixtures (in-memory SQLite with StaticPool for thread-safety)
# ---------------------------------------------------------------------------

@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def blob_store(db_engine) -> BlobStore:
    return BlobStore(make_session_factory(db_engine))


@pytest.fixture()
def corpus(blob_store) -> TrainingCorpus:
    return TrainingCorpus(blob_store, capacity=10_000)


@pytest.fixture()
def model_store(blob_store) -> ModelStore:
    return ModelStore(blob_store)


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider(default=[make_quote(2300.0, 2200.0, 2400.0, 250.0)])


@pytest.fixture()
def make_service(db_engine):
    """Factory for a ForecastService over the in-memory database."""

    def _make(provider: MarketDataProvider, **settings_kwargs) -> ForecastService:
        context = ForecastContext.from_settings(
            make_settings(**settings_kwargs),
            provider=provider,
            engine=db_engine,
            clock=fixed_clock,
        )
        return ForecastService(context, sleep=lambda _s: None)

    return _make
