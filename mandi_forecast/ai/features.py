"""
Feature encoding for mandi price observations.

Temporal features describe when a point was collected, not the date the
provider attached to the quote.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from mandi_forecast.market.catalog import commodity_index, state_index
from mandi_forecast.market.provider import MarketQuote

FEATURE_COLUMNS = [
    "min_price",
    "max_price",
    "arrivals",
    "seasonality",
    "day_of_week",
    "state_index",
    "commodity_index",
    "price_spread",
    "price_volatility",
]

DEFAULT_VOLATILITY = 5.0

# Persisted blobs keep the camelCase field names used by existing corpus documents.
_BLOB_KEYS = {
    "modal_price": "modalPrice",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "arrivals": "arrivals",
    "seasonality": "seasonality",
    "day_of_week": "dayOfWeek",
    "state_index": "stateIndex",
    "commodity_index": "commodityIndex",
    "price_spread": "priceSpread",
    "price_volatility": "priceVolatility",
    "timestamp": "timestamp",
    "commodity": "commodity",
    "state": "state",
    "market": "market",
    "source": "source",
    "target": "target",
}


@dataclass(frozen=True)
class FeaturePoint:
    modal_price: float
    min_price: float
    max_price: float
    arrivals: float
    seasonality: int
    day_of_week: int
    state_index: int
    commodity_index: int
    price_spread: float
    price_volatility: float
    timestamp: str
    commodity: str
    state: str
    market: str
    source: str
    target: float

    def to_dict(self) -> Dict[str, Any]:
        return {_BLOB_KEYS[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeaturePoint":
        """Rebuild a stored point. Raises ValueError if it breaks the modal/target invariant."""
        values = {field: data.get(key) for field, key in _BLOB_KEYS.items()}
        point = cls(
            modal_price=float(values["modal_price"]),
            min_price=float(values["min_price"]),
            max_price=float(values["max_price"]),
            arrivals=float(values["arrivals"] or 0.0),
            seasonality=int(values["seasonality"]),
            day_of_week=int(values["day_of_week"]),
            state_index=int(values["state_index"]),
            commodity_index=int(values["commodity_index"]),
            price_spread=float(values["price_spread"]),
            price_volatility=float(values["price_volatility"]),
            timestamp=str(values["timestamp"]),
            commodity=str(values["commodity"]),
            state=str(values["state"]),
            market=str(values["market"] or ""),
            source=str(values["source"] or ""),
            target=float(values["target"]),
        )
        if not point.modal_price > 0:
            raise ValueError(f"modalPrice must be positive, got {point.modal_price}")
        if point.target != point.modal_price:
            raise ValueError(f"target {point.target} differs from modalPrice {point.modal_price}")
        return point

    def feature_row(self) -> List[float]:
        return [float(getattr(self, column)) for column in FEATURE_COLUMNS]


def seasonality_of(now: datetime) -> int:
    """Month of year, 0-11."""
    return now.month - 1


def day_of_week_of(now: datetime) -> int:
    """Day of week with Sunday = 0."""
    return now.isoweekday() % 7


def price_volatility(modal: float, low: float, high: float) -> float:
    if modal == 0:
        return 0.0
    return (high - low) / modal * 100.0


def encode_observation(
    quote: MarketQuote,
    commodity: str,
    state: str,
    now: datetime,
) -> Optional[FeaturePoint]:
    """Encode one quote, or return None when it has no positive modal price."""
    modal = quote.modal_price
    if modal is None or modal <= 0:
        return None
    low = quote.min_price if quote.min_price else modal
    high = quote.max_price if quote.max_price else modal
    return FeaturePoint(
        modal_price=float(modal),
        min_price=float(low),
        max_price=float(high),
        arrivals=float(quote.arrivals or 0.0),
        seasonality=seasonality_of(now),
        day_of_week=day_of_week_of(now),
        state_index=state_index(state),
        commodity_index=commodity_index(commodity),
        price_spread=float(high - low),
        price_volatility=price_volatility(modal, low, high),
        timestamp=now.isoformat(),
        commodity=commodity,
        state=state,
        market=quote.market,
        source=quote.source,
        target=float(modal),
    )


def encode_observations(
    quotes: Iterable[MarketQuote],
    commodity: str,
    state: str,
    now: datetime,
) -> List[FeaturePoint]:
    points = (encode_observation(q, commodity, state, now) for q in quotes)
    return [p for p in points if p is not None]


def inference_vector(
    avg_price: float,
    arrivals: float,
    commodity: str,
    state: str,
    now: datetime,
) -> np.ndarray:
    """
    Approximate a feature row from a live snapshot average.

    Min/max, spread and volatility are not observed here; they are derived
    from the average price the same way every prediction has been served.
    """
    return np.asarray(
        [
            avg_price * 0.95,
            avg_price * 1.05,
            arrivals,
            seasonality_of(now),
            day_of_week_of(now),
            state_index(state),
            commodity_index(commodity),
            avg_price * 0.1,
            DEFAULT_VOLATILITY,
        ],
        dtype=float,
    )
