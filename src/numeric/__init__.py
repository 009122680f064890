from .fixed_point import CALC_PRECISION, PRECISION, SQRT_ITERATIONS, FixedPointMath

__all__ = ["CALC_PRECISION", "PRECISION", "SQRT_ITERATIONS", "FixedPointMath"]
