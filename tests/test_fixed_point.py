"""Fixed-point kernel built from encrypted primitives."""

from __future__ import annotations

import math

import pytest

from src.fhe.backend import MockFheBackend
from src.numeric.fixed_point import PRECISION, FixedPointMath

P = PRECISION


def reveal(backend: MockFheBackend, value) -> int:
    return backend.unseal(value)


def test_safe_div_guards_zero_divisor(backend, fp) -> None:
    assert reveal(backend, fp.safe_div(backend.encrypt(10), backend.encrypt(3))) == 3
    assert reveal(backend, fp.safe_div(backend.encrypt(10), backend.encrypt(0))) == backend.max_value


def test_precision_mul_and_div(backend, fp) -> None:
    product = fp.precision_mul(backend.encrypt(2 * P), backend.encrypt(3 * P))
    quotient = fp.precision_div(backend.encrypt(1), backend.encrypt(4))

    assert reveal(backend, product) == 6 * P
    assert reveal(backend, quotient) == P // 4


def test_precision_div_by_zero_yields_sentinel(backend, fp) -> None:
    assert reveal(backend, fp.precision_div(backend.encrypt(5), backend.encrypt(0))) == backend.max_value


@pytest.mark.parametrize(
    "x, expected",
    [
        (0, P),
        (P // 10, 1_105_000_000_000),
    ],
)
def test_fast_exp_taylor_terms(backend, fp, x, expected) -> None:
    assert reveal(backend, fp.fast_exp(backend.encrypt(x))) == expected


def test_fast_exp_is_close_near_origin(backend, fp) -> None:
    approx = reveal(backend, fp.fast_exp(backend.encrypt(P // 20))) / P

    assert approx == pytest.approx(math.exp(0.05), abs=1e-4)


@pytest.mark.parametrize(
    "x, expected",
    [
        (P, 0),
        (P + P // 10, 95_000_000_000),
    ],
)
def test_fast_ln_first_order_expansion(backend, fp, x, expected) -> None:
    assert reveal(backend, fp.fast_ln(backend.encrypt(x))) == expected


def test_fast_ln_below_one_wraps(backend, fp) -> None:
    # outside the expansion's range; unsigned subtraction wraps
    assert reveal(backend, fp.fast_ln(backend.encrypt(P // 2))) > P


@pytest.mark.parametrize(
    "base, exponent, expected",
    [
        (2 * P, 10, 1024 * P),
        (3 * P // 2, 3, 3_375_000_000_000),
        (7 * P, 0, P),
        (5 * P, 1, 5 * P),
    ],
)
def test_fast_pow_binary_exponentiation(backend, fp, base, exponent, expected) -> None:
    assert reveal(backend, fp.fast_pow(backend.encrypt(base), exponent)) == expected


def test_fast_pow_multiplication_count_is_logarithmic(backend, fp) -> None:
    base = backend.encrypt(P)
    before = backend.operation_counts.get("mul", 0)

    fp.fast_pow(base, 1024)

    # 10 squarings + 1 result multiply
    assert backend.operation_counts["mul"] - before == 11


def test_fast_pow_rejects_negative_exponent(backend, fp) -> None:
    with pytest.raises(ValueError):
        fp.fast_pow(backend.encrypt(P), -1)


@pytest.mark.parametrize("x, expected", [(0, 0), (1, 1), (4, 2), (16, 4), (100, 10)])
def test_fast_sqrt_newton_iterations(backend, fp, x, expected) -> None:
    assert reveal(backend, fp.fast_sqrt(backend.encrypt(x))) == expected


def test_fast_sqrt_cost_is_independent_of_input(backend, fp) -> None:
    fp.fast_sqrt(backend.encrypt(9))  # warm constant cache
    a = backend.encrypt(16)
    b = backend.encrypt(987_654_321)

    start = backend.cost_units
    fp.fast_sqrt(a)
    first = backend.cost_units - start
    start = backend.cost_units
    fp.fast_sqrt(b)
    second = backend.cost_units - start

    assert first == second


@pytest.mark.parametrize("value, expected", [(5, 10), (50, 50), (500, 100), (10, 10), (100, 100)])
def test_clamp_two_selects(backend, fp, value, expected) -> None:
    low = backend.encrypt(10)
    high = backend.encrypt(100)

    assert reveal(backend, fp.clamp(backend.encrypt(value), low, high)) == expected


def test_complement_and_coarse_precision(backend, fp) -> None:
    assert reveal(backend, fp.complement(backend.encrypt(P // 4))) == 3 * P // 4
    assert reveal(backend, fp.to_calc_precision(backend.encrypt(3 * P))) == 3 * 10**6


def test_constants_are_encrypted_once(backend, fp) -> None:
    assert fp.const(42) is fp.const(42)


def test_precision_must_be_multiple_of_calc_precision(backend) -> None:
    with pytest.raises(ValueError):
        FixedPointMath(backend, precision=10**12, calc_precision=7)
