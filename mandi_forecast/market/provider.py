"""
Market data providers.
Handles mandi price retrieval from data.gov.in, an indicative fallback
built from reference price bands, and bounded-time access for callers.
"""
from __future__ import annotations

import math
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import requests
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from mandi_forecast.config import ProviderConfig
from mandi_forecast.errors import ProviderUnavailable


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


@dataclass(frozen=True)
class MarketQuote:
    """One raw price observation as returned by a provider."""

    market: str
    modal_price: Optional[float]
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    arrivals: Optional[float] = None
    date: Optional[str] = None
    source: str = "unknown"

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any], source: Optional[str] = None) -> "MarketQuote":
        """Build from either camelCase or data.gov.in snake_case keys."""
        return cls(
            market=str(row.get("market") or "Unknown Market"),
            modal_price=_to_float(row.get("modalPrice", row.get("modal_price", row.get("avg_price")))),
            min_price=_to_float(row.get("minPrice", row.get("min_price", row.get("price_min")))),
            max_price=_to_float(row.get("maxPrice", row.get("max_price", row.get("price_max")))),
            arrivals=_to_float(row.get("arrivals")),
            date=row.get("date") or row.get("arrival_date"),
            source=str(source or row.get("source") or "unknown"),
        )


class MarketDataProvider(ABC):
    """Returns raw quotes for a (commodity, state) pair; may return an empty list."""

    name = "provider"

    @abstractmethod
    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# data.gov.in
# ---------------------------------------------------------------------------

class DataGovMarketDataProvider(MarketDataProvider):
    """Agmarknet daily prices published through the data.gov.in resource API."""

    name = "Data.gov.in"

    def __init__(self, config: ProviderConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "mandi-forecast/1.0",
            "Accept": "application/json",
        })

    @property
    def resource_url(self) -> str:
        return f"{self.config.data_gov_base_url.rstrip('/')}/{self.config.data_gov_resource_id}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=5),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _fetch_records(self, commodity: str, state: str) -> List[Dict[str, Any]]:
        params = {
            "api-key": self.config.data_gov_api_key,
            "format": "json",
            "limit": self.config.data_gov_limit,
            "filters[commodity]": commodity,
            "filters[state]": state,
        }
        response = self.session.get(self.resource_url, params=params, timeout=self.config.request_timeout)
        response.raise_for_status()
        payload = response.json() or {}
        return list(payload.get("records") or [])

    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        records = self._fetch_records(commodity, state)
        quotes = [MarketQuote.from_mapping(r, source="Data.gov.in") for r in records]
        logger.debug(f"Data.gov.in returned {len(quotes)} quotes for {commodity}/{state}")
        return quotes


# ---------------------------------------------------------------------------
# Indicative fallback
# ---------------------------------------------------------------------------

# Reference bands per quintal (min, max, modal).
REFERENCE_PRICES: Dict[str, tuple] = {
    "wheat": (2200, 2500, 2350),
    "rice": (3100, 3800, 3450),
    "maize": (1900, 2200, 2050),
    "onion": (1500, 2200, 1850),
    "potato": (1200, 1800, 1500),
    "tomato": (2000, 4500, 3200),
    "soybean": (4200, 4800, 4500),
    "cotton": (5800, 6500, 6150),
    "sugarcane": (280, 320, 300),
    "chili": (8000, 15000, 11500),
    "turmeric": (7500, 12000, 9750),
    "coriander": (6500, 9500, 8000),
}
DEFAULT_REFERENCE_PRICE = (1500, 3000, 2250)

STATE_MARKETS: Dict[str, List[str]] = {
    "Maharashtra": ["Pune APMC", "Mumbai Central Market", "Nashik Agricultural Market"],
    "Punjab": ["Ludhiana Grain Market", "Amritsar APMC", "Jalandhar Agricultural Market"],
    "Haryana": ["Karnal Grain Market", "Hisar APMC", "Gurugram Agricultural Market"],
    "Uttar Pradesh": ["Lucknow Central Market", "Agra APMC", "Varanasi Agricultural Market"],
}
DEFAULT_MARKETS = ["Regional APMC Market", "Central Agricultural Market"]


class IndicativeMarketDataProvider(MarketDataProvider):
    """Quotes derived from reference price bands with a 5-15% daily drift."""

    name = "Indicative"

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        low, high, modal = REFERENCE_PRICES.get((commodity or "").lower(), DEFAULT_REFERENCE_PRICE)
        today = date.today().isoformat()
        with self._lock:
            volatility = 0.05 + self._rng.random() * 0.10
            direction = 1 if self._rng.random() > 0.5 else -1
            quotes = []
            for market in STATE_MARKETS.get(state, DEFAULT_MARKETS):
                variation = 1 + direction * volatility * self._rng.random()
                quotes.append(MarketQuote(
                    market=market,
                    min_price=float(round(low * variation)),
                    max_price=float(round(high * variation)),
                    modal_price=float(round(modal * variation)),
                    arrivals=float(self._rng.integers(100, 500)),
                    date=today,
                    source="Indicative Market Data",
                ))
        return quotes


class ChainedMarketDataProvider(MarketDataProvider):
    """Tries providers in order and returns the first non-empty result."""

    name = "Chained"

    def __init__(self, providers: Sequence[MarketDataProvider]) -> None:
        if not providers:
            raise ValueError("ChainedMarketDataProvider needs at least one provider")
        self.providers = list(providers)

    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        errors: List[str] = []
        for provider in self.providers:
            try:
                quotes = provider.get_prices(commodity, state)
            except Exception as exc:
                logger.warning(f"{provider.name} unavailable for {commodity}/{state}: {exc}")
                errors.append(f"{provider.name}: {exc}")
                continue
            if quotes:
                return quotes
        if len(errors) == len(self.providers):
            raise ProviderUnavailable(commodity, state, "; ".join(errors))
        return []


# ---------------------------------------------------------------------------
# Bounded access
# ---------------------------------------------------------------------------

class BoundedMarketDataProvider(MarketDataProvider):
    """
    Wraps a provider so every call finishes within `timeout` seconds.

    Any failure, timeouts included, surfaces as ProviderUnavailable. A call
    that overruns keeps its worker thread until the underlying request gives up.
    """

    def __init__(self, provider: MarketDataProvider, timeout: float, max_workers: int = 4) -> None:
        self.provider = provider
        self.timeout = timeout
        self.name = provider.name
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="market-fetch")

    def get_prices(self, commodity: str, state: str) -> List[MarketQuote]:
        future = self._executor.submit(self.provider.get_prices, commodity, state)
        try:
            return list(future.result(timeout=self.timeout) or [])
        except FutureTimeout as exc:
            future.cancel()
            raise ProviderUnavailable(commodity, state, f"timed out after {self.timeout:.1f}s") from exc
        except ProviderUnavailable:
            raise
        except Exception as exc:
            raise ProviderUnavailable(commodity, state, str(exc) or type(exc).__name__) from exc

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def build_provider(config: ProviderConfig) -> BoundedMarketDataProvider:
    """data.gov.in first when a key is configured, indicative bands otherwise."""
    providers: List[MarketDataProvider] = []
    if config.data_gov_enabled:
        providers.append(DataGovMarketDataProvider(config))
    else:
        logger.warning("DATA_GOV_API_KEY not configured; using indicative market data only")
    providers.append(IndicativeMarketDataProvider())
    chained = ChainedMarketDataProvider(providers) if len(providers) > 1 else providers[0]
    return BoundedMarketDataProvider(chained, timeout=config.call_timeout)
