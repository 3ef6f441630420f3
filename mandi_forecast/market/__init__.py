from mandi_forecast.market.catalog import (
    COLLECTION_COMMODITIES,
    COLLECTION_STATES,
    COMMODITY_INDEX,
    COMPREHENSIVE_COMMODITIES,
    STATE_INDEX,
    UNKNOWN_INDEX,
    build_catalog,
    commodity_index,
    state_index,
)
from mandi_forecast.market.provider import (
    BoundedMarketDataProvider,
    ChainedMarketDataProvider,
    DataGovMarketDataProvider,
    IndicativeMarketDataProvider,
    MarketDataProvider,
    MarketQuote,
    build_provider,
)

__all__ = [
    "COLLECTION_COMMODITIES", "COLLECTION_STATES", "COMMODITY_INDEX", "COMPREHENSIVE_COMMODITIES",
    "STATE_INDEX", "UNKNOWN_INDEX", "build_catalog", "commodity_index", "state_index",
    "MarketDataProvider", "MarketQuote", "DataGovMarketDataProvider", "IndicativeMarketDataProvider",
    "ChainedMarketDataProvider", "BoundedMarketDataProvider", "build_provider",
]
