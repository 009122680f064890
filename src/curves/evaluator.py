"""
Curve evaluator: dispatches on curve type to compute an encrypted price.

Linear and polynomial curves work in plain integer units. For exponential,
logarithmic and sigmoid curves the coefficients that feed a kernel argument
carry the PRECISION scale, and the outer product goes through
``precision_mul`` so every result is expressed in output units.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from src.exceptions import CurveValidationError
from src.fhe.types import EncryptedUint
from src.numeric.fixed_point import FixedPointMath

from .cache import EvaluationCache, configuration_fingerprint
from .types import MIN_COEFFICIENTS, CurveConfiguration, CurveType, parse_curve_type


class CurveEvaluator:
    """Evaluates encrypted curves with TTL caching"""

    def __init__(self, math: FixedPointMath):
        self.math = math
        self.backend = math.backend
        self._formulas: Dict[CurveType, Callable[[EncryptedUint, List[EncryptedUint]], EncryptedUint]] = {
            CurveType.LINEAR: self._linear,
            CurveType.EXPONENTIAL: self._exponential,
            CurveType.LOGARITHMIC: self._logarithmic,
            CurveType.POLYNOMIAL: self._polynomial,
            CurveType.SIGMOID: self._sigmoid,
        }

    def evaluate(
        self,
        x: EncryptedUint,
        config: CurveConfiguration,
        cache: EvaluationCache,
        now: float,
        input_key: Optional[Any] = None,
    ) -> EncryptedUint:
        """
        Encrypted curve price at ``x``.

        Args:
            x: Encrypted curve input
            config: Curve configuration (validated here before any computation)
            cache: Venue's evaluation cache
            now: Current timestamp (seconds)
            input_key: Optional plaintext facet of ``x`` folded into the cache key

        Returns:
            Encrypted price, clamped when the configuration carries bounds
        """
        curve_type = parse_curve_type(config.curve_type)
        required = MIN_COEFFICIENTS[curve_type]
        if len(config.coefficients) < required:
            raise CurveValidationError(
                f"{curve_type.value} curve needs at least {required} coefficients, got {len(config.coefficients)}"
            )

        key = configuration_fingerprint(config, input_key)
        cached = cache.get(key, now)
        if cached is not None:
            cache.record_hit()
            logger.debug(f"Curve cache hit {key[:8]} ({curve_type.value})")
            return cached

        result = self._formulas[curve_type](x, config.coefficients)

        bounds = config.bounds
        if bounds is not None:
            result = self.math.clamp(result, bounds[0], bounds[1])

        cache.put(key, result, now)
        cache.record_miss()
        logger.debug(f"Curve cache miss {key[:8]} ({curve_type.value}), result stored")
        return result

    # ------------------------------------------------------------------
    # Formulas
    # ------------------------------------------------------------------

    def _linear(self, x: EncryptedUint, c: List[EncryptedUint]) -> EncryptedUint:
        # a*x + b
        b = self.backend
        return b.add(b.mul(c[0], x), c[1])

    def _exponential(self, x: EncryptedUint, c: List[EncryptedUint]) -> EncryptedUint:
        # a * exp(b*x), b scaled
        growth = self.math.fast_exp(self.backend.mul(c[1], x))
        return self.math.precision_mul(c[0], growth)

    def _logarithmic(self, x: EncryptedUint, c: List[EncryptedUint]) -> EncryptedUint:
        # a * ln(b*x + c), b and c scaled
        b = self.backend
        argument = b.add(b.mul(c[1], x), c[2])
        return self.math.precision_mul(c[0], self.math.fast_ln(argument))

    def _polynomial(self, x: EncryptedUint, c: List[EncryptedUint]) -> EncryptedUint:
        # a*x^2 + b*x + c
        b = self.backend
        quadratic = b.mul(c[0], b.mul(x, x))
        return b.add(b.add(quadratic, b.mul(c[1], x)), c[2])

    def _sigmoid(self, x: EncryptedUint, c: List[EncryptedUint]) -> EncryptedUint:
        # L / (1 + exp(-(k*(x - x0)))), k scaled
        b = self.backend
        exponent = b.mul(c[1], b.sub(x, c[2]))
        decay = self.math.fast_exp(self.math.complement(exponent))
        denominator = b.add(self.math.const(self.math.precision), decay)
        return self.math.precision_div(c[0], denominator)
