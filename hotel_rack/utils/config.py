"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_ACTIVE_STATUSES = ("confirmed", "present")


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_statuses(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    statuses = tuple(
        item.strip().lower() for item in raw.split(",") if item.strip()
    )
    return statuses or default


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    active_reservation_statuses: tuple[str, ...]
    kpi_trend_deadband: float
    relocation_lookahead: int
    rack_window_days: int
    seed_demo_data: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    return Settings(
        app_name=_env_str("RACK_APP_NAME", "Hotel Rack Service"),
        app_version=_env_str("RACK_APP_VERSION", "1.0.0"),
        log_level=_env_str("RACK_LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str(
                "RACK_DATABASE_PATH",
                str(PROJECT_ROOT / "data" / "hotel_rack.db"),
            )
        ),
        active_reservation_statuses=_env_statuses(
            "RACK_ACTIVE_STATUSES",
            DEFAULT_ACTIVE_STATUSES,
        ),
        kpi_trend_deadband=_env_float("RACK_KPI_TREND_DEADBAND", 0.05),
        relocation_lookahead=_env_int("RACK_RELOCATION_LOOKAHEAD", 0),
        rack_window_days=_env_int("RACK_WINDOW_DAYS", 14),
        seed_demo_data=_env_bool("RACK_SEED_DEMO_DATA", True),
    )
