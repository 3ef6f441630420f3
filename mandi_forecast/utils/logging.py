"""
Structured JSON logging with loguru.
All components log through the shared loguru logger; this module only
decides where records go.
"""
from __future__ import annotations

import sys
from typing import Any, Dict, Optional

from loguru import logger

from mandi_forecast.config import Settings, settings as default_settings


def setup_logging(app_settings: Optional[Settings] = None) -> None:
    """Configure logging sinks for the forecaster process."""
    cfg = (app_settings or default_settings).logging
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    log_dir = cfg.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    # Console - structured JSON to stdout
    logger.add(
        sys.stdout,
        level=cfg.log_level,
        serialize=True,
    )

    # JSON file - structured, parseable
    logger.add(
        str(log_dir / "forecaster_{time:YYYY-MM-DD}.json"),
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation="1 day",
        retention="30 days",
        compression="gz",
        enqueue=True,
    )

    # Training runs only
    logger.add(
        str(log_dir / "training_{time:YYYY-MM-DD}.json"),
        level="INFO",
        filter=lambda record: record["extra"].get("log_type") == "training",
        serialize=True,
        rotation="1 day",
        retention="90 days",
    )

    # Error log
    logger.add(
        str(log_dir / "errors_{time:YYYY-MM-DD}.log"),
        level="ERROR",
        rotation="1 day",
        retention="60 days",
    )


def log_training(data: Dict[str, Any]) -> None:
    """Log a completed training run with structured data."""
    logger.bind(log_type="training", **data).info(
        "Model trained: size={training_size} r2={r2:.4f} rmse={rmse:.2f}",
        training_size=data.get("training_size", 0),
        r2=data.get("r2", 0.0),
        rmse=data.get("rmse", 0.0),
    )


def log_provider_error(commodity: str, state: str, error: str) -> None:
    """Log a failed market data fetch for one pair."""
    logger.bind(log_type="provider_error", commodity=commodity, state=state).warning(
        "{state} - {commodity}: {error}", state=state, commodity=commodity, error=error
    )
