"""
Central configuration for the mandi price forecaster.
All settings can be overridden via environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

CORPUS_BLOB = "training_corpus"
MODEL_BLOB = "price_model"


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _env_bool(key: str, default: bool = False) -> bool:
    value = _env(key, "").strip()
    if value == "":
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _env_float(key: str, default: float = 0.0) -> float:
    value = _env(key, "").strip()
    if value == "":
        return default
    return float(value)


def _env_int(key: str, default: int = 0) -> int:
    value = _env(key, "").strip()
    if value == "":
        return default
    return int(value)


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StorageConfig:
    database_url: str = _env("DATABASE_URL", "")
    sqlite_path: str = _env("SQLITE_PATH", str(BASE_DIR / "data" / "mandi_forecast.db"))
    sqlite_wal_mode: bool = _env_bool("SQLITE_WAL_MODE", True)

    @property
    def sqlite_resolved_path(self) -> Path:
        path = Path(self.sqlite_path)
        if not path.is_absolute():
            path = (BASE_DIR / path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.sqlite_resolved_path.as_posix()}"


@dataclass(frozen=True)
class ProviderConfig:
    data_gov_api_key: str = _env("DATA_GOV_API_KEY")
    data_gov_base_url: str = _env("DATA_GOV_BASE_URL", "https://api.data.gov.in/resource")
    data_gov_resource_id: str = _env("DATA_GOV_RESOURCE_ID", "9ef84268-d588-465a-a308-a864a43d0070")
    data_gov_limit: int = _env_int("DATA_GOV_LIMIT", 100)
    # Per-request socket timeout handed to requests.
    request_timeout: float = _env_float("PROVIDER_TIMEOUT_SECONDS", 15.0)
    # Wall-clock bound for one provider call, retries included.
    call_timeout: float = _env_float("PROVIDER_CALL_TIMEOUT_SECONDS", 20.0)
    request_delay: float = _env_float("PROVIDER_REQUEST_DELAY", 0.1)
    comprehensive_request_delay: float = _env_float("PROVIDER_COMPREHENSIVE_DELAY", 0.2)

    @property
    def data_gov_enabled(self) -> bool:
        return bool(self.data_gov_api_key.strip())


@dataclass(frozen=True)
class TrainingConfig:
    corpus_capacity: int = _env_int("CORPUS_CAPACITY", 10_000)
    min_data_points: int = _env_int("MIN_DATA_POINTS", 100)
    learning_rate: float = _env_float("TRAINING_LEARNING_RATE", 1e-4)
    epochs: int = _env_int("TRAINING_EPOCHS", 1000)
    model_version: str = _env("MODEL_VERSION", "1.0")

    def __post_init__(self) -> None:
        if self.corpus_capacity <= 0:
            raise ValueError(f"CORPUS_CAPACITY must be positive, got {self.corpus_capacity}")
        if self.min_data_points <= 0:
            raise ValueError(f"MIN_DATA_POINTS must be positive, got {self.min_data_points}")
        if self.epochs < 0:
            raise ValueError(f"TRAINING_EPOCHS must not be negative, got {self.epochs}")


@dataclass(frozen=True)
class SchedulerConfig:
    collect_interval_minutes: float = _env_float("COLLECT_INTERVAL_MINUTES", 30.0)
    run_on_start: bool = _env_bool("COLLECT_ON_START", True)

    @property
    def collect_interval_seconds(self) -> float:
        return self.collect_interval_minutes * 60.0


@dataclass(frozen=True)
class LoggingConfig:
    log_level: str = _env("LOG_LEVEL", "INFO").upper()
    log_dir: Path = Path(_env("LOG_DIR", str(BASE_DIR / "logs")))


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    storage: StorageConfig = field(default_factory=StorageConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


settings = Settings()
