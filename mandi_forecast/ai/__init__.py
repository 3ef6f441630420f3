from mandi_forecast.ai.corpus import TrainingCorpus
from mandi_forecast.ai.features import FEATURE_COLUMNS, FeaturePoint, encode_observation, encode_observations
from mandi_forecast.ai.inference import PricePredictor
from mandi_forecast.ai.model import ModelMetrics, NormalizationStats, PriceModel, PricePrediction
from mandi_forecast.ai.model_store import ModelStore
from mandi_forecast.ai.trainer import ModelTrainer

__all__ = [
    "FEATURE_COLUMNS", "FeaturePoint", "encode_observation", "encode_observations",
    "TrainingCorpus", "ModelTrainer", "ModelStore", "PricePredictor",
    "PriceModel", "PricePrediction", "ModelMetrics", "NormalizationStats",
]
