from mandi_forecast.utils.logging import log_provider_error, log_training, setup_logging

__all__ = ["setup_logging", "log_training", "log_provider_error"]
