"""Domain-level validation rules for rack computations."""

from __future__ import annotations

from dataclasses import dataclass

from hotel_rack.domain.models import RESERVATION_STATUSES
from hotel_rack.utils.config import DEFAULT_ACTIVE_STATUSES, Settings


class RackConfigError(ValueError):
    """Raised when rack tunables are out of range."""


@dataclass(frozen=True)
class RackConfig:
    active_statuses: frozenset[str]
    trend_deadband: float = 0.05
    relocation_lookahead: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RackConfig":
        config = cls(
            active_statuses=frozenset(settings.active_reservation_statuses),
            trend_deadband=settings.kpi_trend_deadband,
            relocation_lookahead=settings.relocation_lookahead,
        )
        validate_rack_config(config)
        return config


DEFAULT_RACK_CONFIG = RackConfig(active_statuses=frozenset(DEFAULT_ACTIVE_STATUSES))


def validate_rack_config(config: RackConfig) -> None:
    if not config.active_statuses:
        raise RackConfigError("active_statuses must contain at least one status")
    unknown = sorted(config.active_statuses - RESERVATION_STATUSES)
    if unknown:
        raise RackConfigError(f"unknown reservation status(es): {', '.join(unknown)}")
    if not 0.0 <= config.trend_deadband < 1.0:
        raise RackConfigError("trend_deadband must be in [0, 1)")
    if config.relocation_lookahead < 0:
        raise RackConfigError("relocation_lookahead must be >= 0")
