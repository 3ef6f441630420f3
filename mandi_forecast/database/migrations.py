"""
Schema bootstrap. The forecaster owns a single table, so create_all is enough.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy.engine import Engine

from mandi_forecast.database.models import Base


def initialize_database(engine: Engine) -> None:
    logger.info(f"Initializing schema on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine)
