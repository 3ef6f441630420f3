"""
Error taxonomy for the forecasting core.

Per-pair provider failures and unreadable blobs are absorbed where they
happen; only prediction failures are meant to reach callers.
"""
from __future__ import annotations


class ForecastError(Exception):
    """Base class for every error raised by the forecasting core."""


class ProviderUnavailable(ForecastError):
    """A market data fetch for one (commodity, state) pair failed or timed out."""

    def __init__(self, commodity: str, state: str, reason: str) -> None:
        super().__init__(f"{commodity}/{state}: {reason}")
        self.commodity = commodity
        self.state = state
        self.reason = reason


class ModelUnavailable(ForecastError):
    """No trained model has been persisted yet."""


class NoCurrentData(ForecastError):
    """The live market snapshot for a pair came back empty."""


class PersistenceFailure(ForecastError):
    """A corpus or model blob could not be read or written."""
