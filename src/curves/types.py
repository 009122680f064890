"""
Curve configuration types and validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from config.settings import RiskLimitSettings
from src.exceptions import CurveValidationError
from src.fhe.types import EncryptedUint


class CurveType(str, Enum):
    """Supported pricing curve kinds."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    POLYNOMIAL = "polynomial"
    SIGMOID = "sigmoid"


# Coefficients each kind needs before optional clamp bounds
MIN_COEFFICIENTS: Dict[CurveType, int] = {
    CurveType.LINEAR: 2,
    CurveType.EXPONENTIAL: 2,
    CurveType.LOGARITHMIC: 3,
    CurveType.POLYNOMIAL: 3,
    CurveType.SIGMOID: 3,
}

BOUND_COEFFICIENTS = 2


@dataclass
class RiskParameters:
    """Plaintext risk bounds attached to a curve"""
    max_leverage: int
    volatility_factor: int  # bps
    max_slippage: int  # bps
    min_liquidity: int
    time_decay_rate: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "max_leverage": self.max_leverage,
            "volatility_factor": self.volatility_factor,
            "max_slippage": self.max_slippage,
            "min_liquidity": self.min_liquidity,
            "time_decay_rate": self.time_decay_rate,
        }


@dataclass
class CurveConfiguration:
    """
    A strategist's pricing curve for one venue.

    Coefficients are ciphertexts in formula order. When at least two more
    coefficients than the kind's minimum are supplied, the last two are the
    encrypted lower and upper clamp bounds. The rule is relative to the kind:
    a linear or exponential curve is clamped with four coefficients, the
    three-coefficient kinds with five. A fixed count of five would leave the
    fifth coefficient of a two-coefficient kind as an unused upper bound.
    """
    curve_type: CurveType
    coefficients: List[EncryptedUint]
    risk: RiskParameters
    strategist: str
    is_active: bool = True
    last_update: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def min_coefficients(self) -> int:
        return MIN_COEFFICIENTS[CurveType(self.curve_type)]

    @property
    def has_bounds(self) -> bool:
        return len(self.coefficients) >= self.min_coefficients + BOUND_COEFFICIENTS

    @property
    def bounds(self) -> Optional[tuple[EncryptedUint, EncryptedUint]]:
        if not self.has_bounds:
            return None
        return self.coefficients[-2], self.coefficients[-1]

    def copy_with(self, **changes: Any) -> "CurveConfiguration":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Public view; coefficients are reported as opaque handles only."""
        return {
            "curve_type": CurveType(self.curve_type).value,
            "coefficient_count": len(self.coefficients),
            "coefficient_handles": [repr(c) for c in self.coefficients],
            "has_bounds": self.has_bounds,
            "risk": self.risk.to_dict(),
            "strategist": self.strategist,
            "is_active": self.is_active,
            "last_update": self.last_update,
        }


def parse_curve_type(value: Any) -> CurveType:
    try:
        return CurveType(value)
    except ValueError:
        raise CurveValidationError(f"Unsupported curve type: {value!r}") from None


def validate_configuration(config: CurveConfiguration, limits: RiskLimitSettings) -> None:
    """Reject a configuration before anything is stored or computed."""
    curve_type = parse_curve_type(config.curve_type)
    required = MIN_COEFFICIENTS[curve_type]
    if len(config.coefficients) < required:
        raise CurveValidationError(
            f"{curve_type.value} curve needs at least {required} coefficients, got {len(config.coefficients)}"
        )
    if not all(isinstance(c, EncryptedUint) for c in config.coefficients):
        raise CurveValidationError("Coefficients must be encrypted values")
    if not config.strategist:
        raise CurveValidationError("Curve must have a strategist")

    risk = config.risk
    if not 0 < risk.max_leverage <= limits.max_leverage_cap:
        raise CurveValidationError(
            f"max_leverage {risk.max_leverage} outside (0, {limits.max_leverage_cap}]"
        )
    if not 0 <= risk.volatility_factor <= limits.max_volatility_bps:
        raise CurveValidationError(
            f"volatility_factor {risk.volatility_factor} outside [0, {limits.max_volatility_bps}]"
        )
    if not 0 <= risk.max_slippage <= limits.max_slippage_bps:
        raise CurveValidationError(
            f"max_slippage {risk.max_slippage} outside [0, {limits.max_slippage_bps}]"
        )
    if risk.min_liquidity <= 0:
        raise CurveValidationError("min_liquidity must be positive")
    if not 0 <= risk.time_decay_rate <= limits.max_time_decay_rate:
        raise CurveValidationError(
            f"time_decay_rate {risk.time_decay_rate} outside [0, {limits.max_time_decay_rate}]"
        )
