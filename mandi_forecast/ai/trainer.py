"""
Training orchestration for the linear price model.

Batch gradient descent on z-scored features, refit from scratch on every
run. Metrics are computed in-sample on the same corpus.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from mandi_forecast.ai.features import FEATURE_COLUMNS, FeaturePoint
from mandi_forecast.ai.metrics import r2_score, rmse
from mandi_forecast.ai.model import ModelMetrics, NormalizationStats, PriceModel
from mandi_forecast.ai.model_store import ModelStore
from mandi_forecast.config import TrainingConfig
from mandi_forecast.utils.logging import log_training


def build_training_frame(points: Sequence[FeaturePoint]) -> pd.DataFrame:
    frame = pd.DataFrame([p.feature_row() + [p.target] for p in points], columns=FEATURE_COLUMNS + ["target"])
    return frame.astype(float)


def normalization_stats(x: np.ndarray) -> List[NormalizationStats]:
    """Population mean/std per column; a zero std is replaced by 1."""
    means = x.mean(axis=0)
    stds = x.std(axis=0)
    stats = []
    for mean, std in zip(means, stds):
        if not np.isfinite(std) or std == 0:
            std = 1.0
        stats.append(NormalizationStats(mean=float(mean), std=float(std)))
    return stats


def normalize(x: np.ndarray, stats: Sequence[NormalizationStats]) -> np.ndarray:
    means = np.asarray([s.mean for s in stats], dtype=float)
    stds = np.asarray([s.std for s in stats], dtype=float)
    return (x - means) / stds


def gradient_descent(
    x: np.ndarray,
    y: np.ndarray,
    learning_rate: float,
    epochs: int,
) -> np.ndarray:
    """
    Fit bias + coefficients by full-batch gradient descent from zeros.

    Returns the weight vector [bias, c1..cn].
    """
    n, num_features = x.shape
    bias = 0.0
    coefficients = np.zeros(num_features, dtype=float)
    for _ in range(epochs):
        residual = bias + x @ coefficients - y
        bias_gradient = float(residual.sum())
        coefficient_gradient = x.T @ residual
        bias -= learning_rate * bias_gradient / n
        coefficients -= learning_rate * coefficient_gradient / n
    return np.concatenate(([bias], coefficients))


def evaluate(weights: np.ndarray, x_normalized: np.ndarray, y: np.ndarray) -> Tuple[ModelMetrics, np.ndarray]:
    predictions = weights[0] + x_normalized @ weights[1:]
    return ModelMetrics(r2=r2_score(y, predictions), rmse=rmse(y, predictions)), predictions


class ModelTrainer:
    def __init__(self, config: TrainingConfig, model_store: ModelStore) -> None:
        self.config = config
        self.model_store = model_store

    def fit(self, points: Sequence[FeaturePoint], now: Optional[datetime] = None) -> Optional[PriceModel]:
        """Fit a model without persisting it. None when the corpus is too small."""
        if len(points) < self.config.min_data_points:
            logger.info(
                f"Insufficient data for training. Need {self.config.min_data_points}, have {len(points)}"
            )
            return None

        frame = build_training_frame(points)
        x = frame[FEATURE_COLUMNS].to_numpy(dtype=float)
        y = frame["target"].to_numpy(dtype=float)

        stats = normalization_stats(x)
        x_normalized = normalize(x, stats)
        weights = gradient_descent(x_normalized, y, self.config.learning_rate, self.config.epochs)
        metrics, _ = evaluate(weights, x_normalized, y)

        trained_at = now or datetime.now(timezone.utc)
        return PriceModel(
            weights=[float(w) for w in weights],
            normalization_stats=stats,
            training_size=len(points),
            metrics=metrics,
            timestamp=trained_at.isoformat(),
            version=self.config.model_version,
        )

    def train(self, points: Sequence[FeaturePoint], now: Optional[datetime] = None) -> Optional[PriceModel]:
        """Fit and persist, replacing any previous model."""
        model = self.fit(points, now=now)
        if model is None:
            return None
        self.model_store.save(model)
        log_training({
            "training_size": model.training_size,
            "r2": model.metrics.r2,
            "rmse": model.metrics.rmse,
            "version": model.version,
        })
        return model
