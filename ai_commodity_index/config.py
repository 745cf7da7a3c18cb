"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``ACCI_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The scoring and index coefficients are module constants in ``scoring`` and
``index``, not configuration. Only operational knobs (paths, lookback
windows, cache lifetime, schedules) live here.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

VALID_PERIODS: frozenset[str] = frozenset({"7d", "30d", "90d", "all"})

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/acci.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000
    seed_file: str = "config/seed/reference_data.json"


class AccuracyConfig(BaseModel):
    """Accuracy scoring and league-table settings."""

    model_config = ConfigDict(frozen=True)

    actual_price_limit: int = 1000
    default_period: str = "all"
    periods: list[str] = ["7d", "30d", "90d", "all"]

    @field_validator("default_period")
    @classmethod
    def validate_default_period(cls, v: str) -> str:
        if v not in VALID_PERIODS:
            raise ValueError(f"default_period must be one of {sorted(VALID_PERIODS)}, got '{v}'.")
        return v

    @field_validator("periods")
    @classmethod
    def validate_periods(cls, v: list[str]) -> list[str]:
        unknown = [p for p in v if p not in VALID_PERIODS]
        if unknown:
            raise ValueError(f"Unknown accuracy periods {unknown}; valid: {sorted(VALID_PERIODS)}.")
        return v

    @field_validator("actual_price_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"actual_price_limit must be >= 1, got {v}.")
        return v


class IndexConfig(BaseModel):
    """Composite index selection windows."""

    model_config = ConfigDict(frozen=True)

    recent_window_days: int = 90
    fallback_prediction_limit: int = 20
    history_days: int = 30


class CacheConfig(BaseModel):
    """Read-side cache lifetime."""

    model_config = ConfigDict(frozen=True)

    ttl_seconds: float = 300.0

    @field_validator("ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {v}.")
        return v


class MarketDataConfig(BaseModel):
    """Yahoo Finance chart endpoint settings."""

    model_config = ConfigDict(frozen=True)

    yahoo_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    history_range: str = "7d"
    interval: str = "1d"
    request_timeout_s: float = 30.0
    min_request_interval_s: float = 2.0


class SchedulerConfig(BaseModel):
    """Daily job schedule (local wall clock)."""

    model_config = ConfigDict(frozen=True)

    daily_index_time: str = "02:00"

    @field_validator("daily_index_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parts = v.split(":")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"daily_index_time must be HH:MM, got '{v}'.")
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"daily_index_time out of range: '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/acci.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Pipeline stages, the dashboard service and CLI commands receive an
    ``AppConfig`` instance built by ``load_config()``.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    accuracy: AccuracyConfig = AccuracyConfig()
    index: IndexConfig = IndexConfig()
    cache: CacheConfig = CacheConfig()
    market_data: MarketDataConfig = MarketDataConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def resolve_project_path(path: str | Path) -> Path:
    """Return ``path`` unchanged if absolute, else relative to the project root."""
    path = Path(path)
    return path if path.is_absolute() else _find_project_root() / path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ACCI_* env vars to the raw config dict.

    Supported overrides:
      ACCI_DB_PATH    → raw["database"]["db_path"]
      ACCI_LOG_LEVEL  → raw["logging"]["level"]
      ACCI_DEBUG      → raw["debug"]
    """
    if db_path := os.environ.get("ACCI_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("ACCI_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("ACCI_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        accuracy=AccuracyConfig(**raw.get("accuracy", {})),
        index=IndexConfig(**raw.get("index", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        market_data=MarketDataConfig(**raw.get("market_data", {})),
        scheduler=SchedulerConfig(**raw.get("scheduler", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
