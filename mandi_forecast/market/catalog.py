"""
Closed vocabularies and collection catalogs.

The commodity and state indices are model inputs: reordering either
mapping silently invalidates every persisted model.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

# Names outside the vocabularies encode to this index. It collides with
# the first real entry ("wheat", "Maharashtra"); persisted models depend on it.
UNKNOWN_INDEX = 0

COMMODITY_INDEX: Dict[str, int] = {
    # Cereals
    "wheat": 0, "rice": 1, "maize": 2, "bajra": 3, "jowar": 4, "ragi": 5,
    # Pulses
    "tur": 6, "moong": 7, "urad": 8, "gram": 9, "masoor": 10, "chana": 11,
    # Oilseeds
    "soybean": 12, "groundnut": 13, "sunflower": 14, "sesame": 15, "safflower": 16, "mustard": 17,
    # Cash crops
    "cotton": 18, "sugarcane": 19, "tobacco": 20,
    # Vegetables
    "onion": 21, "potato": 22, "tomato": 23, "brinjal": 24, "okra": 25, "cauliflower": 26,
    "cabbage": 27, "carrot": 28, "green peas": 29, "green chilli": 30, "capsicum": 31,
    "bottle gourd": 32, "ridge gourd": 33,
    # Fruits
    "mango": 34, "banana": 35, "grapes": 36, "orange": 37, "pomegranate": 38, "papaya": 39,
    "guava": 40, "apple": 41, "sweet lime": 42, "watermelon": 43,
    # Spices
    "turmeric": 44, "coriander": 45, "cumin": 46, "fenugreek": 47, "black pepper": 48,
    "cardamom": 49, "cloves": 50, "ginger": 51, "garlic": 52,
    # Flowers
    "rose": 53, "jasmine": 54, "marigold": 55, "chrysanthemum": 56,
}

STATE_INDEX: Dict[str, int] = {
    "Maharashtra": 0, "Punjab": 1, "Haryana": 2, "Uttar Pradesh": 3,
    "Karnataka": 4, "Andhra Pradesh": 5, "Tamil Nadu": 6, "Gujarat": 7,
    "Rajasthan": 8, "Madhya Pradesh": 9,
}

COLLECTION_STATES: List[str] = ["Maharashtra", "Andhra Pradesh"]

COLLECTION_COMMODITIES: List[str] = list(COMMODITY_INDEX)

# Extended crop list for the one-off comprehensive run. Crops missing from
# COMMODITY_INDEX still collect; they encode with UNKNOWN_INDEX.
COMPREHENSIVE_COMMODITIES: List[str] = [
    # Cereals & Grains
    "wheat", "rice", "maize", "bajra", "jowar", "ragi", "barley",
    # Pulses
    "tur", "moong", "urad", "gram", "masoor", "chana", "field pea", "lathyrus",
    # Oilseeds
    "soybean", "groundnut", "sunflower", "sesame", "safflower", "mustard", "linseed", "castor seed",
    # Cash crops
    "cotton", "sugarcane", "tobacco", "jute",
    # Vegetables
    "onion", "potato", "tomato", "brinjal", "okra", "cauliflower", "cabbage", "carrot",
    "green peas", "green chilli", "capsicum", "bottle gourd", "ridge gourd", "bitter gourd",
    "pumpkin", "cucumber", "radish", "beetroot", "spinach", "fenugreek leaves",
    # Fruits
    "mango", "banana", "grapes", "orange", "pomegranate", "papaya", "guava",
    "apple", "sweet lime", "watermelon", "muskmelon", "custard apple", "jackfruit",
    # Spices & Condiments
    "turmeric", "coriander", "cumin", "fenugreek", "black pepper", "cardamom",
    "cloves", "ginger", "garlic", "dry chilli", "tamarind", "ajwain",
    # Flowers & Others
    "rose", "jasmine", "marigold", "chrysanthemum", "coconut", "areca nut",
]


def commodity_index(commodity: str) -> int:
    return COMMODITY_INDEX.get((commodity or "").lower(), UNKNOWN_INDEX)


def state_index(state: str) -> int:
    return STATE_INDEX.get(state or "", UNKNOWN_INDEX)


def build_catalog(
    commodities: List[str] = COLLECTION_COMMODITIES,
    states: List[str] = COLLECTION_STATES,
) -> List[Tuple[str, str]]:
    """Return (commodity, state) pairs in collection order: state-major."""
    return [(commodity, state) for state in states for commodity in commodities]
