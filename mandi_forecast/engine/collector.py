"""
Market data collection cycle.
Pulls quotes for every catalog pair, encodes them and appends the batch to
the training corpus in one write.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from mandi_forecast.ai.corpus import TrainingCorpus
from mandi_forecast.ai.features import FeaturePoint, encode_observations
from mandi_forecast.errors import ProviderUnavailable
from mandi_forecast.market.provider import MarketDataProvider
from mandi_forecast.utils.logging import log_provider_error


@dataclass
class CollectionReport:
    started_at: str
    pairs_attempted: int = 0
    successful_pairs: int = 0
    empty_pairs: List[Tuple[str, str]] = field(default_factory=list)
    failed_pairs: List[Tuple[str, str]] = field(default_factory=list)
    points_by_state: Dict[str, int] = field(default_factory=dict)
    points_collected: int = 0
    corpus_size: Optional[int] = None
    duration_seconds: float = 0.0

    @property
    def appended(self) -> bool:
        return self.points_collected > 0 and self.corpus_size is not None


class DataCollector:
    def __init__(
        self,
        provider: MarketDataProvider,
        corpus: TrainingCorpus,
        catalog: Sequence[Tuple[str, str]],
        request_delay: float = 0.1,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.provider = provider
        self.corpus = corpus
        self.catalog = list(catalog)
        self.request_delay = request_delay
        self.clock = clock
        self.sleep = sleep

    def fetch_pair(self, commodity: str, state: str) -> List[FeaturePoint]:
        """Fetch and encode one pair. Raises ProviderUnavailable on failure."""
        quotes = self.provider.get_prices(commodity, state)
        return encode_observations(quotes, commodity, state, self.clock())

    def collect(
        self,
        catalog: Optional[Sequence[Tuple[str, str]]] = None,
        request_delay: Optional[float] = None,
    ) -> CollectionReport:
        pairs = list(catalog) if catalog is not None else self.catalog
        delay = self.request_delay if request_delay is None else request_delay
        started = time.monotonic()
        report = CollectionReport(started_at=self.clock().isoformat())
        batch: List[FeaturePoint] = []

        logger.info(f"Collecting mandi data for {len(pairs)} commodity/state pairs")
        for index, (commodity, state) in enumerate(pairs):
            if index and delay > 0:
                self.sleep(delay)
            report.pairs_attempted += 1
            try:
                points = self.fetch_pair(commodity, state)
            except ProviderUnavailable as exc:
                report.failed_pairs.append((commodity, state))
                log_provider_error(commodity, state, exc.reason)
                continue
            except Exception as exc:
                report.failed_pairs.append((commodity, state))
                log_provider_error(commodity, state, str(exc) or type(exc).__name__)
                continue

            if not points:
                report.empty_pairs.append((commodity, state))
                logger.debug(f"{state} - {commodity}: No data available")
                continue

            batch.extend(points)
            report.successful_pairs += 1
            report.points_by_state[state] = report.points_by_state.get(state, 0) + len(points)
            logger.debug(f"{state} - {commodity}: {len(points)} data points")

        report.points_collected = len(batch)
        if batch:
            report.corpus_size = self.corpus.append(batch)
            logger.info(
                f"Saved {len(batch)} new training data points "
                f"(corpus size {report.corpus_size}, failed pairs {len(report.failed_pairs)})"
            )
        else:
            logger.warning("Collection cycle produced no data points")
        report.duration_seconds = time.monotonic() - started
        return report
