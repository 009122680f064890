"""
Staged pre-trade / post-trade pricing over confidential curves.
"""

from .curve_hook import ConfidentialCurveHook, Venue
from .pricing import constant_product_output, dynamic_fee, fallback_price
from .types import (
    CurveEvent,
    PendingTradeComputation,
    PostTradeResult,
    PreTradeResult,
    TradeDirection,
    TradeParams,
    TradeStage,
    VenueState,
)

__all__ = [
    "ConfidentialCurveHook",
    "Venue",
    "constant_product_output",
    "dynamic_fee",
    "fallback_price",
    "CurveEvent",
    "PendingTradeComputation",
    "PostTradeResult",
    "PreTradeResult",
    "TradeDirection",
    "TradeParams",
    "TradeStage",
    "VenueState",
]
