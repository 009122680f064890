"""
Typed structures for the staged (pre-trade / post-trade) pricing protocol.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Optional


class TradeDirection(str, Enum):
    ZERO_FOR_ONE = "zero_for_one"  # token0 in, token1 out
    ONE_FOR_ZERO = "one_for_zero"


class TradeStage(str, Enum):
    PRE_TRADE = "pre_trade"
    RESOLVED = "resolved"
    PENDING_FALLBACK = "pending_fallback"
    POST_TRADE = "post_trade"
    DONE = "done"


@dataclass
class TradeParams:
    venue_id: str
    amount_in: int
    direction: TradeDirection
    originator: str
    timestamp: Optional[float] = None  # supplied by the venue framework; clock otherwise


@dataclass
class VenueState:
    reserve0: int = 0
    reserve1: int = 0
    total_volume: int = 0
    trade_count: int = 0
    settled_trades: int = 0
    fallback_trades: int = 0
    fees_collected: int = 0
    last_trade_at: Optional[float] = None
    recent_volumes: Deque[int] = field(default_factory=lambda: deque(maxlen=100))

    @property
    def total_liquidity(self) -> int:
        return self.reserve0 + self.reserve1

    @property
    def rolling_volume(self) -> int:
        return sum(self.recent_volumes)

    def reserves_for(self, direction: TradeDirection) -> tuple[int, int]:
        """(reserve_in, reserve_out) for a trade direction."""
        if TradeDirection(direction) == TradeDirection.ZERO_FOR_ONE:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reserve0": self.reserve0,
            "reserve1": self.reserve1,
            "total_liquidity": self.total_liquidity,
            "total_volume": self.total_volume,
            "rolling_volume": self.rolling_volume,
            "trade_count": self.trade_count,
            "settled_trades": self.settled_trades,
            "fallback_trades": self.fallback_trades,
            "fees_collected": self.fees_collected,
            "last_trade_at": self.last_trade_at,
        }


@dataclass
class PendingTradeComputation:
    fallback_price: int
    computed_at: float
    decryption_key: str
    pending: bool = True


@dataclass
class PreTradeResult:
    trade_key: str
    decryption_key: str
    stage: TradeStage
    final_price: int
    fee_bps: int
    computation_cost: int
    used_fallback: bool = False
    was_from_cache: bool = False


@dataclass
class PostTradeResult:
    trade_key: str
    stage: TradeStage
    had_pending: bool = False
    completed: bool = False
    decrypted_value: Optional[int] = None
    fallback_price: Optional[int] = None
    computation_cost: int = 0


@dataclass
class CurveEvent:
    name: str
    venue_id: str
    timestamp: float
    payload: Dict[str, Any] = field(default_factory=dict)
