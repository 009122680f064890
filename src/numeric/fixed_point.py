"""
Fixed-point numeric kernel over encrypted values.

Every operation is composed from the backend primitives only. Loop bounds and
call counts are fixed at definition time (or depend on plaintext arguments),
never on encrypted data, so execution cost reveals nothing about the inputs.

Values carrying the PRECISION scale represent ``real * PRECISION``.
"""

from __future__ import annotations

from typing import Dict

from loguru import logger

from src.fhe.backend import FheBackend
from src.fhe.types import EncryptedUint

PRECISION = 10**12
CALC_PRECISION = 10**6
SQRT_ITERATIONS = 3


class FixedPointMath:
    """Fixed-point helpers bound to one backend"""

    def __init__(
        self,
        backend: FheBackend,
        precision: int = PRECISION,
        calc_precision: int = CALC_PRECISION,
    ):
        if precision % calc_precision != 0:
            raise ValueError("precision must be a multiple of calc_precision")
        self.backend = backend
        self.precision = int(precision)
        self.calc_precision = int(calc_precision)
        self._constants: Dict[int, EncryptedUint] = {}
        logger.debug(f"Fixed-point kernel ready (precision={self.precision})")

    def const(self, value: int) -> EncryptedUint:
        """Trivially encrypted public constant, reused across calls."""
        enc = self._constants.get(value)
        if enc is None:
            enc = self.backend.encrypt(value)
            self._constants[value] = enc
        return enc

    # ------------------------------------------------------------------
    # Guarded arithmetic
    # ------------------------------------------------------------------

    def safe_div(self, numerator: EncryptedUint, denominator: EncryptedUint) -> EncryptedUint:
        """Division whose zero-divisor result is the backend maximum, chosen by select."""
        b = self.backend
        is_zero = b.eq(denominator, self.const(0))
        divisor = b.select(is_zero, self.const(1), denominator)
        quotient = b.div(numerator, divisor)
        return b.select(is_zero, self.const(b.max_value), quotient)

    def precision_mul(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        return self.safe_div(self.backend.mul(a, b), self.const(self.precision))

    def precision_div(self, numerator: EncryptedUint, denominator: EncryptedUint) -> EncryptedUint:
        scaled = self.backend.mul(numerator, self.const(self.precision))
        return self.safe_div(scaled, denominator)

    def complement(self, value: EncryptedUint) -> EncryptedUint:
        """``PRECISION - value``; stands in for negation on unsigned ciphertexts."""
        return self.backend.sub(self.const(self.precision), value)

    def clamp(self, value: EncryptedUint, low: EncryptedUint, high: EncryptedUint) -> EncryptedUint:
        """``min(max(value, low), high)`` as two sequential selects."""
        b = self.backend
        floored = b.select(b.lt(value, low), low, value)
        return b.select(b.gt(floored, high), high, floored)

    def to_calc_precision(self, value: EncryptedUint) -> EncryptedUint:
        """Rescale a PRECISION value to the coarse CALC_PRECISION grid."""
        return self.safe_div(value, self.const(self.precision // self.calc_precision))

    # ------------------------------------------------------------------
    # Series approximations
    # ------------------------------------------------------------------

    def fast_exp(self, x: EncryptedUint) -> EncryptedUint:
        """
        Second-order Taylor expansion ``1 + x + x^2/2`` in fixed point.

        Accurate only near zero; inputs are not rescaled here.
        """
        b = self.backend
        half_square = self.safe_div(self.precision_mul(x, x), self.const(2))
        return b.add(b.add(self.const(self.precision), x), half_square)

    def fast_ln(self, x: EncryptedUint) -> EncryptedUint:
        """
        First-order expansion around 1: ``(x-1) - (x-1)^2/2`` in fixed point.

        For ``x < 1`` the unsigned subtraction wraps.
        """
        b = self.backend
        delta = b.sub(x, self.const(self.precision))
        half_square = self.safe_div(self.precision_mul(delta, delta), self.const(2))
        return b.sub(delta, half_square)

    def fast_pow(self, base: EncryptedUint, exponent: int) -> EncryptedUint:
        """Binary exponentiation with a plaintext exponent, O(log exponent) multiplications."""
        if exponent < 0:
            raise ValueError("exponent must be a non-negative plaintext integer")
        result = self.const(self.precision)
        square = base
        remaining = int(exponent)
        while remaining > 0:
            if remaining & 1:
                result = self.precision_mul(result, square)
            remaining >>= 1
            if remaining:
                square = self.precision_mul(square, square)
        return result

    def fast_sqrt(self, x: EncryptedUint) -> EncryptedUint:
        """Integer square root by Newton-Raphson, guess ``x/2``, fixed iteration count."""
        b = self.backend
        zero = self.const(0)
        two = self.const(2)
        root = self.safe_div(x, two)
        # guess of 0 (x < 2) would divide by zero on the first step
        root = b.select(b.eq(root, zero), self.const(1), root)
        for _ in range(SQRT_ITERATIONS):
            root = self.safe_div(b.add(root, self.safe_div(x, root)), two)
        return b.select(b.eq(x, zero), zero, root)
