"""
Linear price model artifact and its prediction outputs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from mandi_forecast.ai.features import FEATURE_COLUMNS


@dataclass(frozen=True)
class NormalizationStats:
    mean: float
    std: float

    def to_dict(self) -> Dict[str, float]:
        return {"mean": self.mean, "std": self.std}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizationStats":
        return cls(mean=float(data["mean"]), std=float(data["std"]))


@dataclass(frozen=True)
class ModelMetrics:
    r2: float
    rmse: float

    def to_dict(self) -> Dict[str, float]:
        return {"r2": self.r2, "rmse": self.rmse}


@dataclass(frozen=True)
class PriceModel:
    weights: List[float]
    normalization_stats: List[NormalizationStats]
    training_size: int
    metrics: ModelMetrics
    timestamp: str
    version: str
    feature_columns: List[str] = field(default_factory=lambda: list(FEATURE_COLUMNS))

    def __post_init__(self) -> None:
        if len(self.weights) != len(self.normalization_stats) + 1:
            raise ValueError(
                f"Expected {len(self.normalization_stats) + 1} weights, got {len(self.weights)}"
            )

    @property
    def bias(self) -> float:
        return self.weights[0]

    @property
    def coefficients(self) -> np.ndarray:
        return np.asarray(self.weights[1:], dtype=float)

    def normalize(self, row: Sequence[float]) -> np.ndarray:
        means = np.asarray([s.mean for s in self.normalization_stats], dtype=float)
        stds = np.asarray([s.std for s in self.normalization_stats], dtype=float)
        return (np.asarray(row, dtype=float) - means) / stds

    def predict_row(self, row: Sequence[float]) -> float:
        """Apply the model to one raw (unnormalized) feature row."""
        return float(self.bias + np.dot(self.coefficients, self.normalize(row)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": {
                "weights": list(self.weights),
                "featureStats": [s.to_dict() for s in self.normalization_stats],
            },
            "metrics": self.metrics.to_dict(),
            "trainingSize": self.training_size,
            "features": list(self.feature_columns),
            "timestamp": self.timestamp,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceModel":
        body = data["model"]
        metrics = data.get("metrics") or {}
        return cls(
            weights=[float(w) for w in body["weights"]],
            normalization_stats=[NormalizationStats.from_dict(s) for s in body["featureStats"]],
            training_size=int(data.get("trainingSize", 0)),
            metrics=ModelMetrics(r2=float(metrics.get("r2", 0.0)), rmse=float(metrics.get("rmse", 0.0))),
            timestamp=str(data.get("timestamp", "")),
            version=str(data.get("version", "unknown")),
            feature_columns=list(data.get("features") or FEATURE_COLUMNS),
        )


@dataclass
class PricePrediction:
    predicted_price: float
    confidence: float
    range_min: float
    range_max: float
    current_average: float
    model_metrics: Dict[str, Any]
    commodity: str
    state: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictedPrice": round(self.predicted_price),
            "confidence": round(self.confidence * 100),
            "range": {"min": round(self.range_min), "max": round(self.range_max)},
            "currentAverage": round(self.current_average),
            "modelMetrics": dict(self.model_metrics),
            "features": {
                "commodity": self.commodity,
                "state": self.state,
                "timestamp": self.timestamp,
            },
        }


@dataclass
class PriceInsight:
    type: str
    message: str
    recommendation: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "recommendation": self.recommendation,
            "confidence": self.confidence,
        }


@dataclass
class PriceInsights:
    prediction: PricePrediction
    insights: List[PriceInsight]
    timestamp: str
    volatility: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prediction": self.prediction.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
            "timestamp": self.timestamp,
        }
