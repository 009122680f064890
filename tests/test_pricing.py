"""Plaintext fallback pricing, dynamic fees and curve controls."""

from __future__ import annotations

import pytest

from config.settings import FeeSettings
from src.controls.curve_controls import CurveControls, CurveMode
from src.exceptions import CurveValidationError, UnauthorizedStrategistError, VenueNotFoundError
from src.hooks.pricing import constant_product_output, dynamic_fee, fallback_price


def test_constant_product_output() -> None:
    assert constant_product_output(1_000, 1_000, 100) == 1_000 - 1_000_000 // 1_100 == 91


@pytest.mark.parametrize(
    "reserve_in, reserve_out, amount, volatility, expected",
    [
        (1_000, 1_000, 100, 0, 91),
        (1_000, 1_000, 100, 500, 95),
        (1_000, 1_000, 200, 500, 175),
        (0, 1_000, 200, 500, 190),
        (1_000, 0, 200, 500, 190),
        (0, 0, 1, 0, 0),
    ],
)
def test_fallback_price(reserve_in, reserve_out, amount, volatility, expected) -> None:
    assert fallback_price(reserve_in, reserve_out, amount, volatility) == expected


def test_fallback_price_is_deterministic() -> None:
    results = {fallback_price(5_000, 7_000, 321, 250) for _ in range(5)}

    assert len(results) == 1


def test_dynamic_fee_components() -> None:
    fees = FeeSettings(base_fee_bps=30, volatility_weight_bps=1_000, computation_fee_per_kunit=10, max_fee_bps=1_000)

    assert dynamic_fee(0, 0, fees) == 30
    assert dynamic_fee(500, 0, fees) == 80
    assert dynamic_fee(500, 2_000, fees) == 100


def test_dynamic_fee_is_capped() -> None:
    fees = FeeSettings(base_fee_bps=30, volatility_weight_bps=10_000, computation_fee_per_kunit=10, max_fee_bps=200)

    assert dynamic_fee(10_000, 100_000, fees) == 200


# ----------------------------------------------------------------------
# Controls
# ----------------------------------------------------------------------


@pytest.fixture
def controls() -> CurveControls:
    controls = CurveControls()
    controls.register("v1", "alice")
    return controls


def test_register_twice_is_rejected(controls) -> None:
    with pytest.raises(CurveValidationError):
        controls.register("v1", "bob")


def test_unknown_venue_raises(controls) -> None:
    with pytest.raises(VenueNotFoundError):
        controls.strategist_of("v2")


def test_pause_and_resume_gate_trading(controls) -> None:
    controls.pause("v1", "alice", reason="maintenance")

    allowed, reason = controls.is_trading_allowed("v1")
    assert not allowed
    assert "maintenance" in reason
    status = controls.check_status("v1")
    assert status["mode"] == CurveMode.PAUSED.value
    assert status["paused_at"] is not None

    controls.resume("v1", "alice")
    assert controls.is_trading_allowed("v1") == (True, None)


def test_only_strategist_may_pause(controls) -> None:
    with pytest.raises(UnauthorizedStrategistError):
        controls.pause("v1", "bob")

    assert controls.is_trading_allowed("v1") == (True, None)


def test_transfer_returns_previous_strategist(controls) -> None:
    assert controls.transfer_strategist("v1", "alice", "bob") == "alice"
    assert controls.strategist_of("v1") == "bob"

    with pytest.raises(CurveValidationError):
        controls.transfer_strategist("v1", "bob", "")
