"""
Public (plaintext) pricing helpers: fallback price and dynamic fee.
"""

from __future__ import annotations

from config.settings import FeeSettings

BPS = 10_000


def constant_product_output(reserve_in: int, reserve_out: int, amount_in: int) -> int:
    """Output of an x*y=k swap, integer-floored."""
    return reserve_out - (reserve_in * reserve_out) // (reserve_in + amount_in)


def fallback_price(
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    volatility_bps: int,
    empty_reserve_share_bps: int = 9_500,
) -> int:
    """
    Publicly computable stand-in for the confidential curve price.

    Constant-product output marked up by the volatility factor, or a flat
    share of the input when either reserve is empty.
    """
    if reserve_in <= 0 or reserve_out <= 0:
        return amount_in * empty_reserve_share_bps // BPS
    output = constant_product_output(reserve_in, reserve_out, amount_in)
    return output * (BPS + volatility_bps) // BPS


def dynamic_fee(volatility_bps: int, computation_cost: int, fees: FeeSettings) -> int:
    """Base fee plus volatility and computation-cost terms, capped (bps)."""
    volatility_term = volatility_bps * fees.volatility_weight_bps // BPS
    computation_term = computation_cost * fees.computation_fee_per_kunit // 1_000
    return min(fees.base_fee_bps + volatility_term + computation_term, fees.max_fee_bps)
