"""
Curve health scoring from plaintext risk bounds and venue state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config.settings import RiskLimitSettings
from src.curves.types import CurveConfiguration

LOW_LIQUIDITY_PENALTY = 20
HIGH_VOLATILITY_PENALTY = 15
STALE_CURVE_PENALTY = 10


@dataclass
class HealthReport:
    score: int = 100
    is_healthy: bool = True
    reasons: List[str] = field(default_factory=list)
    snapshot: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": int(self.score),
            "is_healthy": bool(self.is_healthy),
            "reasons": list(self.reasons),
            "snapshot": dict(self.snapshot),
        }


def score_health(
    config: CurveConfiguration,
    total_liquidity: int,
    now: float,
    limits: RiskLimitSettings,
) -> HealthReport:
    score = 100
    reasons: List[str] = []

    if total_liquidity < 2 * config.risk.min_liquidity:
        score -= LOW_LIQUIDITY_PENALTY
        reasons.append("low_liquidity")

    if config.risk.volatility_factor > limits.health_high_volatility_bps:
        score -= HIGH_VOLATILITY_PENALTY
        reasons.append("high_volatility")

    staleness = now - config.last_update
    if staleness > limits.health_stale_after_seconds:
        score -= STALE_CURVE_PENALTY
        reasons.append("stale_curve")

    return HealthReport(
        score=score,
        is_healthy=score >= limits.health_threshold,
        reasons=reasons,
        snapshot={
            "total_liquidity": float(total_liquidity),
            "min_liquidity": float(config.risk.min_liquidity),
            "volatility_bps": float(config.risk.volatility_factor),
            "staleness_seconds": float(max(0.0, staleness)),
        },
    )
