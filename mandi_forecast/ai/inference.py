"""
Inference service for mandi price forecasts.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
from loguru import logger

from mandi_forecast.ai.features import inference_vector
from mandi_forecast.ai.model import PriceInsight, PriceInsights, PricePrediction
from mandi_forecast.ai.model_store import ModelStore
from mandi_forecast.errors import ModelUnavailable, NoCurrentData, ProviderUnavailable
from mandi_forecast.market.provider import MarketDataProvider, MarketQuote

MIN_CONFIDENCE = 0.85
TREND_BAND = 0.05
HIGH_VOLATILITY_PCT = 15.0


class PricePredictor:
    def __init__(
        self,
        provider: MarketDataProvider,
        model_store: ModelStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.provider = provider
        self.model_store = model_store
        self.clock = clock

    def _snapshot(self, commodity: str, state: str) -> List[MarketQuote]:
        try:
            quotes = self.provider.get_prices(commodity, state)
        except ProviderUnavailable as exc:
            raise NoCurrentData(f"No current market data available for {commodity}/{state}: {exc.reason}") from exc
        quotes = [q for q in quotes if q.modal_price is not None and q.modal_price > 0]
        if not quotes:
            raise NoCurrentData(f"No current market data available for {commodity}/{state}")
        return quotes

    @staticmethod
    def _averages(quotes: List[MarketQuote]) -> Tuple[float, float]:
        avg_price = float(np.mean([q.modal_price for q in quotes]))
        avg_arrivals = float(np.mean([q.arrivals or 0.0 for q in quotes]))
        return avg_price, avg_arrivals

    def predict(
        self,
        commodity: str,
        state: str,
        extra_features: Optional[Dict[str, Any]] = None,
    ) -> PricePrediction:
        model = self.model_store.load()
        if model is None:
            raise ModelUnavailable("No trained model available")

        quotes = self._snapshot(commodity, state)
        return self._predict_from_snapshot(model, quotes, commodity, state, extra_features)

    def _predict_from_snapshot(self, model, quotes, commodity, state, extra_features) -> PricePrediction:
        avg_price, avg_arrivals = self._averages(quotes)
        arrivals = (extra_features or {}).get("arrivals")
        if arrivals is None:
            arrivals = avg_arrivals

        now = self.clock()
        row = inference_vector(avg_price, float(arrivals), commodity, state, now)
        predicted = model.predict_row(row)

        confidence = max(MIN_CONFIDENCE, model.metrics.r2)
        # abs() keeps range_min <= predicted <= range_max for negative estimates.
        error_margin = abs(predicted) * (1 - confidence) * 0.5

        logger.debug(f"Predicted {commodity}/{state}: {predicted:.2f} (avg {avg_price:.2f})")
        return PricePrediction(
            predicted_price=predicted,
            confidence=confidence,
            range_min=predicted - error_margin,
            range_max=predicted + error_margin,
            current_average=avg_price,
            model_metrics={
                "r2": model.metrics.r2,
                "rmse": model.metrics.rmse,
                "trainingSize": model.training_size,
            },
            commodity=commodity,
            state=state,
            timestamp=now.isoformat(),
        )

    def price_insights(self, commodity: str, state: str) -> PriceInsights:
        """Trend and volatility advice built on top of predict()."""
        model = self.model_store.load()
        if model is None:
            raise ModelUnavailable("No trained model available")
        quotes = self._snapshot(commodity, state)
        prediction = self._predict_from_snapshot(model, quotes, commodity, state, None)

        pct_confidence = round(prediction.confidence * 100)
        current = prediction.current_average
        predicted = prediction.predicted_price
        insights: List[PriceInsight] = []

        if predicted > current * (1 + TREND_BAND):
            change = round((predicted - current) / current * 100)
            insights.append(PriceInsight(
                type="price_increase",
                message=f"Price expected to increase by {change}%",
                recommendation="Consider delaying sale for better prices",
                confidence=pct_confidence,
            ))
        elif predicted < current * (1 - TREND_BAND):
            change = round((current - predicted) / current * 100)
            insights.append(PriceInsight(
                type="price_decrease",
                message=f"Price expected to decrease by {change}%",
                recommendation="Consider selling soon before prices drop",
                confidence=pct_confidence,
            ))
        else:
            insights.append(PriceInsight(
                type="price_stable",
                message="Prices expected to remain stable",
                recommendation="Normal market conditions, sell when convenient",
                confidence=pct_confidence,
            ))

        modal_prices = [q.modal_price for q in quotes]
        volatility = (max(modal_prices) - min(modal_prices)) / current * 100 if current else 0.0
        if volatility > HIGH_VOLATILITY_PCT:
            insights.append(PriceInsight(
                type="high_volatility",
                message=f"High price volatility detected ({volatility:.1f}%)",
                recommendation="Monitor prices closely, market is unstable",
                confidence=90,
            ))

        return PriceInsights(
            prediction=prediction,
            insights=insights,
            timestamp=self.clock().isoformat(),
            volatility=volatility,
        )
