"""Tests for rack tunable validation.

Covers every branch of validate_rack_config() and RackConfig.from_settings().
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from hotel_rack.domain.constraints import RackConfig, RackConfigError, validate_rack_config
from hotel_rack.utils.config import get_settings


def valid_config(**overrides) -> RackConfig:
    """Return a valid baseline RackConfig, optionally overriding fields."""
    defaults = {
        "active_statuses": frozenset({"confirmed", "present"}),
        "trend_deadband": 0.05,
        "relocation_lookahead": 0,
    }
    defaults.update(overrides)
    return RackConfig(**defaults)


def test_valid_config_passes() -> None:
    validate_rack_config(valid_config())


def test_empty_active_statuses_raises() -> None:
    with pytest.raises(RackConfigError):
        validate_rack_config(valid_config(active_statuses=frozenset()))


def test_unknown_active_status_raises() -> None:
    with pytest.raises(RackConfigError, match="teleported"):
        validate_rack_config(valid_config(active_statuses=frozenset({"confirmed", "teleported"})))


@pytest.mark.parametrize("deadband", [-0.01, 1.0])
def test_trend_deadband_out_of_range_raises(deadband: float) -> None:
    with pytest.raises(RackConfigError):
        validate_rack_config(valid_config(trend_deadband=deadband))


def test_zero_deadband_allowed() -> None:
    validate_rack_config(valid_config(trend_deadband=0.0))


def test_negative_lookahead_raises() -> None:
    with pytest.raises(RackConfigError):
        validate_rack_config(valid_config(relocation_lookahead=-1))


def test_rack_config_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        validate_rack_config(valid_config(relocation_lookahead=-5))


def test_from_settings_copies_tunables() -> None:
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        active_reservation_statuses=("confirmed", "present", "option"),
        kpi_trend_deadband=0.1,
        relocation_lookahead=3,
    )

    config = RackConfig.from_settings(settings)

    assert config.active_statuses == frozenset({"confirmed", "present", "option"})
    assert config.trend_deadband == 0.1
    assert config.relocation_lookahead == 3


def test_from_settings_validates(monkeypatch) -> None:
    monkeypatch.setenv("RACK_ACTIVE_STATUSES", "confirmed,ghost")
    get_settings.cache_clear()
    try:
        with pytest.raises(RackConfigError):
            RackConfig.from_settings(get_settings())
    finally:
        get_settings.cache_clear()
