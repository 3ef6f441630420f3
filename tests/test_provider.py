"""
Tests for market data providers and bounded provider access.
"""
import threading
from unittest.mock import MagicMock

import pytest
import requests

from mandi_forecast.config import ProviderConfig
from mandi_forecast.errors import ProviderUnavailable
from mandi_forecast.market.provider import (
    BoundedMarketDataProvider,
    ChainedMarketDataProvider,
    DataGovMarketDataProvider,
    IndicativeMarketDataProvider,
    MarketQuote,
    build_provider,
)
from tests.conftest import FakeProvider, make_quote


def _config(**overrides) -> ProviderConfig:
    values = dict(data_gov_api_key="test-key", request_timeout=3, call_timeout=1.0)
    values.update(overrides)
    return ProviderConfig(**values)


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestMarketQuote:
    def test_from_camel_case(self):
        quote = MarketQuote.from_mapping(
            {"market": "Pune APMC", "modalPrice": 2350, "minPrice": 2200, "maxPrice": 2500, "arrivals": 120}
        )
        assert quote.modal_price == 2350.0
        assert quote.min_price == 2200.0
        assert quote.max_price == 2500.0
        assert quote.arrivals == 120.0

    def test_from_data_gov_record(self):
        quote = MarketQuote.from_mapping(
            {
                "market": "Lasalgaon",
                "modal_price": "1850",
                "min_price": "1500",
                "max_price": "",
                "arrival_date": "15/07/2026",
            },
            source="Data.gov.in",
        )
        assert quote.modal_price == 1850.0
        assert quote.max_price is None
        assert quote.arrivals is None
        assert quote.date == "15/07/2026"
        assert quote.source == "Data.gov.in"

    def test_unparseable_price_is_none(self):
        quote = MarketQuote.from_mapping({"modal_price": "n/a"})
        assert quote.modal_price is None
        assert quote.market == "Unknown Market"


class TestDataGovProvider:
    def test_parses_records_and_sends_filters(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = _response({
            "records": [
                {"market": "Pune", "modal_price": "2350", "min_price": "2200", "max_price": "2500"},
                {"market": "Nashik", "modal_price": "2400", "min_price": "2250", "max_price": "2550"},
            ]
        })
        provider = DataGovMarketDataProvider(_config(), session=session)

        quotes = provider.get_prices("Wheat", "Maharashtra")

        assert [q.market for q in quotes] == ["Pune", "Nashik"]
        assert all(q.source == "Data.gov.in" for q in quotes)
        _, kwargs = session.get.call_args
        assert kwargs["params"]["filters[commodity]"] == "Wheat"
        assert kwargs["params"]["filters[state]"] == "Maharashtra"
        assert kwargs["params"]["api-key"] == "test-key"
        assert kwargs["timeout"] == 3

    def test_missing_records_is_empty(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = _response({})
        provider = DataGovMarketDataProvider(_config(), session=session)
        assert provider.get_prices("wheat", "Punjab") == []

    def test_retries_then_raises(self, monkeypatch):
        monkeypatch.setattr(DataGovMarketDataProvider._fetch_records.retry, "sleep", lambda _s: None)
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = requests.ConnectionError("connection reset")
        provider = DataGovMarketDataProvider(_config(), session=session)
        with pytest.raises(requests.ConnectionError):
            provider.get_prices("wheat", "Punjab")
        assert session.get.call_count == 3


class TestIndicativeProvider:
    def test_quotes_follow_reference_band(self):
        quotes = IndicativeMarketDataProvider(seed=1).get_prices("wheat", "Maharashtra")
        assert [q.market for q in quotes] == ["Pune APMC", "Mumbai Central Market", "Nashik Agricultural Market"]
        for quote in quotes:
            assert 2350 * 0.85 <= quote.modal_price <= 2350 * 1.15
            assert quote.min_price <= quote.modal_price <= quote.max_price

    def test_seeded_provider_is_reproducible(self):
        first = IndicativeMarketDataProvider(seed=5).get_prices("onion", "Gujarat")
        second = IndicativeMarketDataProvider(seed=5).get_prices("onion", "Gujarat")
        assert first == second
        assert len(first) == 2


class TestChainedProvider:
    def test_falls_back_on_error_and_empty(self):
        failing = FakeProvider(failing=[("wheat", "Punjab")])
        empty = FakeProvider()
        good = FakeProvider(default=[make_quote(2300.0)])
        chained = ChainedMarketDataProvider([failing, empty, good])
        assert chained.get_prices("wheat", "Punjab")[0].modal_price == 2300.0

    def test_all_failing_raises(self):
        chained = ChainedMarketDataProvider([FakeProvider(failing=[("wheat", "Punjab")])])
        with pytest.raises(ProviderUnavailable):
            chained.get_prices("wheat", "Punjab")

    def test_all_empty_returns_empty(self):
        assert ChainedMarketDataProvider([FakeProvider(), FakeProvider()]).get_prices("wheat", "Punjab") == []


class TestBoundedProvider:
    def test_passes_through_results(self):
        bounded = BoundedMarketDataProvider(FakeProvider(default=[make_quote(2300.0)]), timeout=1.0)
        try:
            assert len(bounded.get_prices("wheat", "Punjab")) == 1
        finally:
            bounded.shutdown()

    def test_timeout_becomes_provider_unavailable(self):
        release = threading.Event()

        class SlowProvider(FakeProvider):
            def get_prices(self, commodity, state):
                release.wait(timeout=5)
                return []

        bounded = BoundedMarketDataProvider(SlowProvider(), timeout=0.05)
        try:
            with pytest.raises(ProviderUnavailable) as excinfo:
                bounded.get_prices("wheat", "Punjab")
            assert "timed out" in excinfo.value.reason
        finally:
            release.set()
            bounded.shutdown()

    def test_errors_become_provider_unavailable(self):
        bounded = BoundedMarketDataProvider(FakeProvider(failing=[("wheat", "Punjab")]), timeout=1.0)
        try:
            with pytest.raises(ProviderUnavailable) as excinfo:
                bounded.get_prices("wheat", "Punjab")
            assert excinfo.value.commodity == "wheat"
            assert "provider down" in excinfo.value.reason
        finally:
            bounded.shutdown()


def test_build_provider_without_key_uses_indicative_only():
    provider = build_provider(_config(data_gov_api_key=""))
    try:
        assert isinstance(provider, BoundedMarketDataProvider)
        assert isinstance(provider.provider, IndicativeMarketDataProvider)
    finally:
        provider.shutdown()


def test_build_provider_with_key_chains_data_gov_first():
    provider = build_provider(_config())
    try:
        assert isinstance(provider.provider, ChainedMarketDataProvider)
        assert isinstance(provider.provider.providers[0], DataGovMarketDataProvider)
    finally:
        provider.shutdown()
