"""
Bounded training corpus persisted as a single blob.
"""
from __future__ import annotations

from typing import List, Mapping, Sequence

from loguru import logger

from mandi_forecast.ai.features import FeaturePoint
from mandi_forecast.config import CORPUS_BLOB
from mandi_forecast.database.blob_store import BlobStore
from mandi_forecast.errors import PersistenceFailure


class TrainingCorpus:
    """
    Append-only list of FeaturePoints capped at `capacity` entries.

    Appending past the cap drops the oldest entries first. Every append is a
    full read/modify/write of the blob, so callers must serialize writers.
    """

    def __init__(self, blob_store: BlobStore, capacity: int = 10_000, blob_name: str = CORPUS_BLOB) -> None:
        if capacity <= 0:
            raise ValueError(f"Corpus capacity must be positive, got {capacity}")
        self.blob_store = blob_store
        self.capacity = capacity
        self.blob_name = blob_name

    def load(self) -> List[FeaturePoint]:
        try:
            raw = self.blob_store.read(self.blob_name)
        except PersistenceFailure as exc:
            logger.warning(f"Training corpus unreadable, treating as empty: {exc}")
            return []
        if not raw:
            return []
        if not isinstance(raw, list):
            logger.warning(f"Training corpus is a {type(raw).__name__}, not a list; treating as empty")
            return []
        points: List[FeaturePoint] = []
        skipped = 0
        for item in raw:
            if not isinstance(item, Mapping):
                skipped += 1
                continue
            try:
                points.append(FeaturePoint.from_dict(item))
            except (KeyError, TypeError, ValueError):
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} malformed corpus entries")
        return points

    def size(self) -> int:
        return len(self.load())

    def append(self, points: Sequence[FeaturePoint]) -> int:
        """Append points, evict the oldest beyond capacity, and return the new size."""
        existing = self.load()
        combined = existing + list(points)
        evicted = max(0, len(combined) - self.capacity)
        if evicted:
            combined = combined[evicted:]
            logger.info(f"Evicted {evicted} oldest corpus entries (capacity {self.capacity})")
        self.blob_store.write(self.blob_name, [p.to_dict() for p in combined])
        return len(combined)
