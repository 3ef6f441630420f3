"""
Whole-document persistence backed by the forecast_blobs table.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from mandi_forecast.database.connection import SessionFactory, session_scope
from mandi_forecast.database.models import StoredBlob
from mandi_forecast.errors import PersistenceFailure


class BlobStore:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def read(self, name: str) -> Optional[Any]:
        """Return the decoded document, or None if it was never written."""
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(StoredBlob, name)
                raw = row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not read blob '{name}': {exc}") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise PersistenceFailure(f"Blob '{name}' is not valid JSON: {exc}") from exc

    def write(self, name: str, document: Any) -> None:
        try:
            raw = json.dumps(document, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceFailure(f"Blob '{name}' is not serializable: {exc}") from exc
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(StoredBlob, name)
                if row is None:
                    row = StoredBlob(name=name)
                    session.add(row)
                row.payload = raw
                row.size_bytes = len(raw)
                row.updated_at = datetime.utcnow()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not write blob '{name}': {exc}") from exc
        logger.debug(f"Wrote blob {name} ({len(raw)} bytes)")
