"""
Curve configuration, evaluation and result caching.
"""

from .cache import CachedEvaluation, EvaluationCache, configuration_fingerprint, fingerprint
from .evaluator import CurveEvaluator
from .types import (
    MIN_COEFFICIENTS,
    CurveConfiguration,
    CurveType,
    RiskParameters,
    parse_curve_type,
    validate_configuration,
)

__all__ = [
    "CachedEvaluation",
    "EvaluationCache",
    "configuration_fingerprint",
    "fingerprint",
    "CurveEvaluator",
    "MIN_COEFFICIENTS",
    "CurveConfiguration",
    "CurveType",
    "RiskParameters",
    "parse_curve_type",
    "validate_configuration",
]
