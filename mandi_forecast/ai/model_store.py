"""
Single-slot store for the current price model.
"""
from __future__ import annotations

from typing import Optional

from loguru import logger

from mandi_forecast.ai.model import PriceModel
from mandi_forecast.config import MODEL_BLOB
from mandi_forecast.database.blob_store import BlobStore
from mandi_forecast.errors import PersistenceFailure


class ModelStore:
    def __init__(self, blob_store: BlobStore, blob_name: str = MODEL_BLOB) -> None:
        self.blob_store = blob_store
        self.blob_name = blob_name

    def save(self, model: PriceModel) -> None:
        """Replace the stored model. Raises PersistenceFailure on write errors."""
        self.blob_store.write(self.blob_name, model.to_dict())
        logger.info(f"Saved price model version={model.version} trained_at={model.timestamp}")

    def load(self) -> Optional[PriceModel]:
        try:
            raw = self.blob_store.read(self.blob_name)
        except PersistenceFailure as exc:
            logger.warning(f"Stored model unreadable, treating as absent: {exc}")
            return None
        if not raw:
            return None
        try:
            return PriceModel.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Stored model malformed, treating as absent: {exc}")
            return None

    def exists(self) -> bool:
        return self.load() is not None
