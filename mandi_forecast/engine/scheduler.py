"""
Periodic collection and conditional retraining.

Every cycle (timer, manual or train-only) runs under one lock so the corpus
and model blobs only ever have a single writer.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from mandi_forecast.ai.corpus import TrainingCorpus
from mandi_forecast.ai.model import PriceModel
from mandi_forecast.ai.trainer import ModelTrainer
from mandi_forecast.engine.collector import CollectionReport, DataCollector


class SchedulerState(Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    APPENDED_DATA = "appended_data"
    TRAINING = "training"


@dataclass
class CycleResult:
    report: Optional[CollectionReport]
    model: Optional[PriceModel]

    @property
    def trained(self) -> bool:
        return self.model is not None


class Ticker:
    """Runs `fn` on a daemon thread every `interval` seconds until stopped."""

    def __init__(
        self,
        interval: float,
        fn: Callable[[], object],
        name: str = "ticker",
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Ticker interval must be positive, got {interval}")
        self.interval = interval
        self.fn = fn
        self.name = name
        self.run_immediately = run_immediately
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning(f"Ticker {self.name} already running.")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started ticker {self.name} every {self.interval:.0f}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop ticking. A tick already in progress is allowed to finish."""
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        if self.run_immediately and not self._stop.is_set():
            self._tick()
        while not self._stop.wait(self.interval):
            self._tick()

    def _tick(self) -> None:
        try:
            self.fn()
        except Exception:
            logger.exception(f"Ticker {self.name} task failed.")


class CycleScheduler:
    def __init__(
        self,
        collector: DataCollector,
        trainer: ModelTrainer,
        corpus: TrainingCorpus,
        interval_seconds: float = 30 * 60,
        run_on_start: bool = True,
    ) -> None:
        self.collector = collector
        self.trainer = trainer
        self.corpus = corpus
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self._cycle_lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._ticker: Optional[Ticker] = None
        self.last_result: Optional[CycleResult] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def min_data_points(self) -> int:
        return self.trainer.config.min_data_points

    @property
    def is_running(self) -> bool:
        return self._ticker is not None and self._ticker.is_running

    # ------------------------------------------------------------------
    # Steps (caller holds the cycle lock)
    # ------------------------------------------------------------------

    def _collect(self, catalog=None, request_delay: Optional[float] = None) -> CollectionReport:
        self._state = SchedulerState.COLLECTING
        report = self.collector.collect(catalog, request_delay=request_delay)
        if report.appended:
            self._state = SchedulerState.APPENDED_DATA
        return report

    def _train(self) -> Optional[PriceModel]:
        self._state = SchedulerState.TRAINING
        points = self.corpus.load()
        logger.info(f"Training price model on {len(points)} points")
        return self.trainer.train(points)

    def _maybe_train(self, corpus_size: Optional[int] = None) -> Optional[PriceModel]:
        size = corpus_size if corpus_size is not None else self.corpus.size()
        if size < self.min_data_points:
            logger.info(f"Corpus has {size} points; training needs {self.min_data_points}")
            return None
        return self._train()

    # ------------------------------------------------------------------
    # Public entry points (each is one serialized cycle)
    # ------------------------------------------------------------------

    def collect(self, catalog=None) -> CollectionReport:
        with self._cycle_lock:
            try:
                return self._collect(catalog)
            finally:
                self._state = SchedulerState.IDLE

    def maybe_train(self) -> Optional[PriceModel]:
        with self._cycle_lock:
            try:
                return self._maybe_train()
            finally:
                self._state = SchedulerState.IDLE

    def train_now(self) -> Optional[PriceModel]:
        with self._cycle_lock:
            try:
                return self._train()
            finally:
                self._state = SchedulerState.IDLE

    def run_cycle(self) -> CycleResult:
        """Collect, then train if the corpus reached the minimum size."""
        with self._cycle_lock:
            try:
                report = self._collect()
                model = self._maybe_train(report.corpus_size) if report.appended else None
                result = CycleResult(report=report, model=model)
                self.last_result = result
                return result
            finally:
                self._state = SchedulerState.IDLE

    def manual_train(self, catalog=None, request_delay: Optional[float] = None) -> CycleResult:
        """Collect fresh data and always attempt a training run."""
        with self._cycle_lock:
            try:
                logger.info("Manual training triggered")
                report = self._collect(catalog, request_delay=request_delay)
                model = self._train()
                result = CycleResult(report=report, model=model)
                self.last_result = result
                return result
            finally:
                self._state = SchedulerState.IDLE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.is_running:
            logger.warning("Scheduler already running.")
            return
        self._ticker = Ticker(
            self.interval_seconds,
            self.run_cycle,
            name="mandi-collector",
            run_immediately=self.run_on_start,
        )
        self._ticker.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._ticker is not None:
            self._ticker.stop(timeout=timeout)
            self._ticker = None
            logger.info("Scheduler stopped.")
