"""
Curve Controls - strategist authorization, pause and resume per venue
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger

from src.exceptions import CurveValidationError, UnauthorizedStrategistError, VenueNotFoundError


class CurveMode(str, Enum):
    """Curve activation states."""

    ACTIVE = "active"
    PAUSED = "paused"


class VenueControlState:
    """Authorization and activation state for one venue."""

    def __init__(self, strategist: str):
        self.strategist = strategist
        self.mode = CurveMode.ACTIVE
        self.pause_reason: Optional[str] = None
        self.paused_at: Optional[datetime] = None


class CurveControls:
    """Resolves the current strategist and gates mutations and trading per venue."""

    def __init__(self):
        """Initialize curve controls."""
        self.venues: Dict[str, VenueControlState] = {}
        logger.info("Curve controls initialized")

    @staticmethod
    def _utc_now() -> datetime:
        """Get current timezone-aware UTC timestamp."""
        return datetime.now(timezone.utc)

    def _state(self, venue_id: str) -> VenueControlState:
        state = self.venues.get(venue_id)
        if state is None:
            raise VenueNotFoundError(venue_id)
        return state

    def register(self, venue_id: str, strategist: str) -> None:
        """Register a venue's first strategist at initialization."""
        if venue_id in self.venues:
            raise CurveValidationError(f"Venue {venue_id} already has a strategist")
        self.venues[venue_id] = VenueControlState(strategist)

    def strategist_of(self, venue_id: str) -> str:
        return self._state(venue_id).strategist

    def require_strategist(self, venue_id: str, caller: str) -> None:
        """
        Reject callers other than the venue's current strategist.

        Raises:
            UnauthorizedStrategistError: caller is not the strategist
        """
        strategist = self.strategist_of(venue_id)
        if caller != strategist:
            logger.warning(f"Unauthorized curve mutation on {venue_id} by {caller}")
            raise UnauthorizedStrategistError(
                f"{caller} is not the strategist of venue {venue_id}"
            )

    def transfer_strategist(self, venue_id: str, caller: str, new_strategist: str) -> str:
        """
        Hand the venue over to a new strategist.

        Returns:
            The previous strategist
        """
        self.require_strategist(venue_id, caller)
        if not new_strategist:
            raise CurveValidationError("New strategist must be non-empty")
        state = self._state(venue_id)
        previous = state.strategist
        state.strategist = new_strategist
        logger.info(f"Strategist of {venue_id} transferred: {previous} -> {new_strategist}")
        return previous

    def pause(self, venue_id: str, caller: str, reason: str = "strategist pause") -> None:
        """
        Pause pricing on a venue. The configuration is kept intact.

        Args:
            venue_id: Venue to pause
            caller: Must be the current strategist
            reason: Reason for pause
        """
        self.require_strategist(venue_id, caller)
        state = self._state(venue_id)
        state.mode = CurveMode.PAUSED
        state.pause_reason = reason
        state.paused_at = self._utc_now()
        logger.warning(f"Curve on {venue_id} paused: {reason}")

    def resume(self, venue_id: str, caller: str) -> None:
        """Resume pricing after a pause."""
        self.require_strategist(venue_id, caller)
        state = self._state(venue_id)
        state.mode = CurveMode.ACTIVE
        state.pause_reason = None
        state.paused_at = None
        logger.info(f"Curve on {venue_id} resumed")

    def check_status(self, venue_id: str) -> Dict[str, Any]:
        state = self._state(venue_id)
        return {
            "mode": state.mode.value,
            "trading_allowed": state.mode == CurveMode.ACTIVE,
            "strategist": state.strategist,
            "pause_reason": state.pause_reason,
            "paused_at": state.paused_at.isoformat() if state.paused_at else None,
        }

    def is_trading_allowed(self, venue_id: str) -> tuple[bool, Optional[str]]:
        """
        Check if the venue's curve may price trades.

        Returns:
            (allowed, reason) tuple
        """
        status = self.check_status(venue_id)
        if status["trading_allowed"]:
            return True, None
        return False, f"Paused: {status['pause_reason']}"
