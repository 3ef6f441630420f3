"""
Tests for feature encoding.
"""
from datetime import datetime

import numpy as np
import pytest

from mandi_forecast.ai.features import (
    DEFAULT_VOLATILITY,
    FEATURE_COLUMNS,
    FeaturePoint,
    encode_observation,
    encode_observations,
    inference_vector,
)
from mandi_forecast.market.catalog import UNKNOWN_INDEX, commodity_index, state_index
from tests.conftest import FIXED_NOW, make_quote


def test_non_positive_modal_price_is_dropped():
    assert encode_observation(make_quote(0.0), "wheat", "Maharashtra", FIXED_NOW) is None
    assert encode_observation(make_quote(-10.0), "wheat", "Maharashtra", FIXED_NOW) is None
    assert encode_observation(make_quote(None), "wheat", "Maharashtra", FIXED_NOW) is None


def test_point_invariants():
    point = encode_observation(make_quote(2000.0, 1800.0, 2300.0, 120.0), "Onion", "Punjab", FIXED_NOW)
    assert point.target == point.modal_price == 2000.0
    assert point.price_spread == pytest.approx(500.0)
    assert point.price_volatility == pytest.approx(25.0)
    assert point.arrivals == 120.0
    assert point.commodity_index == 21
    assert point.state_index == 1


def test_missing_min_max_fall_back_to_modal():
    point = encode_observation(make_quote(1500.0, None, 0.0, None), "potato", "Gujarat", FIXED_NOW)
    assert point.min_price == 1500.0
    assert point.max_price == 1500.0
    assert point.price_spread == 0.0
    assert point.price_volatility == 0.0
    assert point.arrivals == 0.0


def test_temporal_features_come_from_collection_clock():
    # The quote is dated 2020-01-01; the encoding clock wins.
    point = encode_observation(make_quote(2000.0), "wheat", "Maharashtra", FIXED_NOW)
    assert point.seasonality == 6
    assert point.day_of_week == 3
    assert point.timestamp == FIXED_NOW.isoformat()


def test_sunday_is_day_zero():
    sunday = datetime(2026, 7, 19, 8, 0, 0)
    point = encode_observation(make_quote(2000.0), "wheat", "Maharashtra", sunday)
    assert point.day_of_week == 0


def test_unknown_names_map_to_unknown_index():
    point = encode_observation(make_quote(2000.0), "dragon fruit", "Atlantis", FIXED_NOW)
    assert point.commodity_index == UNKNOWN_INDEX
    assert point.state_index == UNKNOWN_INDEX
    assert commodity_index("WHEAT") == commodity_index("wheat") == 0
    assert state_index("maharashtra") == UNKNOWN_INDEX


def test_encode_observations_skips_invalid_rows():
    quotes = [make_quote(2000.0), make_quote(0.0), make_quote(2100.0)]
    points = encode_observations(quotes, "wheat", "Maharashtra", FIXED_NOW)
    assert [p.modal_price for p in points] == [2000.0, 2100.0]


def test_blob_round_trip_uses_camel_case_keys():
    point = encode_observation(make_quote(2000.0, 1900.0, 2100.0), "rice", "Karnataka", FIXED_NOW)
    data = point.to_dict()
    assert data["modalPrice"] == 2000.0
    assert data["dayOfWeek"] == 3
    assert data["commodityIndex"] == 1
    assert FeaturePoint.from_dict(data) == point


def test_from_dict_rejects_points_breaking_invariants():
    point = encode_observation(make_quote(2000.0, 1900.0, 2100.0), "rice", "Karnataka", FIXED_NOW)
    with pytest.raises(ValueError):
        FeaturePoint.from_dict(dict(point.to_dict(), modalPrice=-5.0, target=-5.0))
    with pytest.raises(ValueError):
        FeaturePoint.from_dict(dict(point.to_dict(), target=1999.0))


def test_feature_row_order():
    point = encode_observation(make_quote(2000.0, 1900.0, 2100.0, 300.0), "rice", "Karnataka", FIXED_NOW)
    assert len(FEATURE_COLUMNS) == 9
    assert point.feature_row() == pytest.approx([1900.0, 2100.0, 300.0, 6.0, 3.0, 4.0, 1.0, 200.0, 10.0])


def test_inference_vector_approximates_min_max_from_average():
    row = inference_vector(2000.0, 150.0, "cotton", "Tamil Nadu", FIXED_NOW)
    np.testing.assert_allclose(
        row,
        [1900.0, 2100.0, 150.0, 6.0, 3.0, 6.0, 18.0, 200.0, DEFAULT_VOLATILITY],
    )
