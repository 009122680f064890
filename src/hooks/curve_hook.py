"""
Confidential curve hook: the staged pre-trade / post-trade pricing protocol.

Each venue owns its configuration, evaluation cache, decryption records and
pending trade computations. An invocation against a venue either commits all
of its mutations or none (the venue is snapshotted and restored on failure),
and a venue cannot be re-entered while one of its invocations is in flight.
Nothing waits on decryption: progress across the pre/post pair is carried in
per-venue records, and callers re-invoke to advance it.
"""

from __future__ import annotations

import copy
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, List, Optional

from loguru import logger

from config.settings import Settings
from src.controls.curve_controls import CurveControls
from src.curves.cache import EvaluationCache, configuration_fingerprint, fingerprint
from src.curves.evaluator import CurveEvaluator
from src.curves.types import CurveConfiguration, CurveType, validate_configuration
from src.decryption.manager import DecryptionManager, DecryptionRecord
from src.exceptions import (
    ComputationBudgetExceeded,
    CurveValidationError,
    ReentrancyError,
    VenueNotFoundError,
)
from src.fhe.backend import FheBackend
from src.fhe.decryption_service import DecryptionService
from src.fhe.types import EncryptedUint
from src.numeric.fixed_point import FixedPointMath
from src.risk.health import HealthReport, score_health
from src.undo_log import UndoLog

from .pricing import dynamic_fee, fallback_price
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

PRICE_OPERATION = "price"


@dataclass
class Venue:
    venue_id: str
    config: CurveConfiguration
    state: VenueState
    cache: EvaluationCache
    decryption: DecryptionManager
    pending: Dict[str, PendingTradeComputation] = field(default_factory=dict)

    def checkpoint(self, journal: UndoLog) -> Dict[str, Any]:
        """
        Start journaling writes for one invocation.

        Keyed collections are journaled per touched key; the configuration is
        replaced rather than mutated, and the state's volume window is bounded.
        """
        self.cache.journal = journal
        self.decryption.journal = journal
        return {
            "config": self.config,
            "state": copy.deepcopy(self.state),
            "cache_hits": self.cache.hits,
            "cache_misses": self.cache.misses,
        }

    def restore(self, checkpoint: Dict[str, Any], journal: UndoLog) -> None:
        journal.rollback()
        self.config = checkpoint["config"]
        self.state = checkpoint["state"]
        self.cache.hits = checkpoint["cache_hits"]
        self.cache.misses = checkpoint["cache_misses"]

    def release(self) -> None:
        self.cache.journal = None
        self.decryption.journal = None


@dataclass
class _Invocation:
    venue: Venue
    operation: str
    budget: int
    start_cost: int
    backend: FheBackend
    journal: UndoLog
    events: List[CurveEvent] = field(default_factory=list)

    def cost(self) -> int:
        return self.backend.cost_units - self.start_cost

    def enforce_budget(self) -> int:
        cost = self.cost()
        if cost > self.budget:
            raise ComputationBudgetExceeded(cost, self.budget)
        return cost

    def set_pending(self, trade_key: str, pending: PendingTradeComputation) -> None:
        self.journal.touch(self.venue.pending, trade_key)
        self.venue.pending[trade_key] = pending

    def pop_pending(self, trade_key: str) -> Optional[PendingTradeComputation]:
        if trade_key not in self.venue.pending:
            return None
        self.journal.touch(self.venue.pending, trade_key)
        return self.venue.pending.pop(trade_key)

    def emit(self, name: str, timestamp: float, **payload: Any) -> None:
        self.events.append(
            CurveEvent(name=name, venue_id=self.venue.venue_id, timestamp=timestamp, payload=payload)
        )


class ConfidentialCurveHook:
    """Pricing engine for confidential-curve venues"""

    def __init__(
        self,
        backend: FheBackend,
        decryption_service: DecryptionService,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], float]] = None,
        controls: Optional[CurveControls] = None,
    ):
        self.settings = settings or Settings.load()
        self.backend = backend
        self.decryption_service = decryption_service
        self.clock = clock or time.time
        self.controls = controls or CurveControls()
        self.math = FixedPointMath(
            backend,
            precision=self.settings.engine.precision,
            calc_precision=self.settings.engine.calc_precision,
        )
        self.evaluator = CurveEvaluator(self.math)
        self.venues: Dict[str, Venue] = {}
        self._in_flight: set[str] = set()
        self._listeners: List[Callable[[CurveEvent], None]] = []
        logger.info("Confidential curve hook initialized")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _venue(self, venue_id: str) -> Venue:
        venue = self.venues.get(venue_id)
        if venue is None:
            raise VenueNotFoundError(venue_id)
        return venue

    @contextmanager
    def _invocation(self, venue_id: str, operation: str, budget: Optional[int] = None) -> Iterator[_Invocation]:
        venue = self._venue(venue_id)
        if venue_id in self._in_flight:
            raise ReentrancyError(f"Venue {venue_id} re-entered during {operation}")

        self._in_flight.add(venue_id)
        journal = UndoLog()
        checkpoint = venue.checkpoint(journal)
        invocation = _Invocation(
            venue=venue,
            operation=operation,
            budget=int(budget if budget is not None else self.settings.engine.max_computation_budget),
            start_cost=self.backend.cost_units,
            backend=self.backend,
            journal=journal,
        )
        try:
            yield invocation
        except Exception as e:
            venue.restore(checkpoint, journal)
            logger.error(f"{operation} on {venue_id} aborted, state rolled back: {e}")
            raise
        else:
            journal.commit()
        finally:
            venue.release()
            self._in_flight.discard(venue_id)

        # listeners run once the venue is free again, so they may act on it
        for event in invocation.events:
            self._notify(event)

    def subscribe(self, callback: Callable[[CurveEvent], None]) -> None:
        """Register a listener for committed curve events."""
        self._listeners.append(callback)

    def _notify(self, event: CurveEvent) -> None:
        logger.info(f"[{event.venue_id}] {event.name} {event.payload}")
        for callback in self._listeners:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Curve event listener failed on {event.name}: {e}")

    def _now(self, params: Optional[TradeParams] = None) -> float:
        if params is not None and params.timestamp is not None:
            return float(params.timestamp)
        return float(self.clock())

    # ------------------------------------------------------------------
    # Fingerprints
    # ------------------------------------------------------------------

    def trade_fingerprint(self, params: TradeParams, now: float) -> str:
        bucket = int(now // self.settings.engine.trade_time_bucket_seconds)
        return fingerprint(
            params.venue_id,
            params.amount_in,
            TradeDirection(params.direction).value,
            bucket,
            params.originator,
        )

    @staticmethod
    def decryption_key(venue_id: str, operation: str, *operation_params: Any) -> str:
        return fingerprint(venue_id, operation, *operation_params)

    def _price_key(self, venue: Venue, amount_in: int) -> str:
        cfg = venue.config
        return self.decryption_key(venue.venue_id, PRICE_OPERATION, amount_in, cfg.last_update, cfg.strategist)

    # ------------------------------------------------------------------
    # Lifecycle & governance
    # ------------------------------------------------------------------

    def initialize(
        self,
        venue_id: str,
        config: CurveConfiguration,
        reserve0: int = 0,
        reserve1: int = 0,
    ) -> CurveConfiguration:
        """Create the venue's curve; the configuration's strategist becomes its owner."""
        if venue_id in self.venues:
            raise CurveValidationError(f"Venue {venue_id} is already initialized")
        validate_configuration(config, self.settings.risk)
        if reserve0 < 0 or reserve1 < 0:
            raise CurveValidationError("Reserves must be non-negative")

        now = self._now()
        stored = config.copy_with(
            curve_type=CurveType(config.curve_type),
            coefficients=list(config.coefficients),
            is_active=True,
            last_update=now,
        )
        self.controls.register(venue_id, stored.strategist)
        self.venues[venue_id] = Venue(
            venue_id=venue_id,
            config=stored,
            state=VenueState(
                reserve0=reserve0,
                reserve1=reserve1,
                recent_volumes=deque(maxlen=self.settings.engine.rolling_volume_window),
            ),
            cache=EvaluationCache(ttl_seconds=self.settings.engine.cache_ttl_seconds),
            decryption=DecryptionManager(self.decryption_service),
        )
        self._notify(
            CurveEvent(
                name="curve_initialized",
                venue_id=venue_id,
                timestamp=now,
                payload={"curve_type": stored.curve_type.value, "strategist": stored.strategist},
            )
        )
        return stored

    def update(self, venue_id: str, config: CurveConfiguration, caller: str) -> CurveConfiguration:
        """Replace the curve (strategist only). Ownership and activation carry over."""
        with self._invocation(venue_id, "update") as inv:
            self.controls.require_strategist(venue_id, caller)
            validate_configuration(config, self.settings.risk)
            now = self._now()
            current = inv.venue.config
            inv.venue.config = config.copy_with(
                curve_type=CurveType(config.curve_type),
                coefficients=list(config.coefficients),
                strategist=current.strategist,
                is_active=current.is_active,
                last_update=now,
            )
            inv.emit("curve_updated", now, curve_type=inv.venue.config.curve_type.value)
            return inv.venue.config

    def transfer_strategist(self, venue_id: str, caller: str, new_strategist: str) -> None:
        with self._invocation(venue_id, "transfer_strategist") as inv:
            previous = self.controls.transfer_strategist(venue_id, caller, new_strategist)
            inv.venue.config = inv.venue.config.copy_with(strategist=new_strategist)
            inv.emit("strategist_transferred", self._now(), previous=previous, current=new_strategist)

    def pause(self, venue_id: str, caller: str, reason: str = "strategist pause") -> None:
        with self._invocation(venue_id, "pause") as inv:
            self.controls.pause(venue_id, caller, reason)
            inv.venue.config = inv.venue.config.copy_with(is_active=False)
            inv.emit("curve_paused", self._now(), reason=reason)

    def resume(self, venue_id: str, caller: str) -> None:
        with self._invocation(venue_id, "resume") as inv:
            self.controls.resume(venue_id, caller)
            inv.venue.config = inv.venue.config.copy_with(is_active=True)
            inv.emit("curve_resumed", self._now())

    def update_reserves(self, venue_id: str, reserve0: int, reserve1: int) -> None:
        """Sync plaintext reserves from the venue framework."""
        if reserve0 < 0 or reserve1 < 0:
            raise CurveValidationError("Reserves must be non-negative")
        with self._invocation(venue_id, "update_reserves") as inv:
            inv.venue.state.reserve0 = int(reserve0)
            inv.venue.state.reserve1 = int(reserve1)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def venue_ids(self) -> List[str]:
        return sorted(self.venues)

    def get_curve_configuration(self, venue_id: str) -> CurveConfiguration:
        config = self._venue(venue_id).config
        return config.copy_with(coefficients=list(config.coefficients), metadata=dict(config.metadata))

    def get_venue_state(self, venue_id: str) -> VenueState:
        return copy.deepcopy(self._venue(venue_id).state)

    def get_pending_computation(self, venue_id: str, trade_key: str) -> Optional[PendingTradeComputation]:
        pending = self._venue(venue_id).pending.get(trade_key)
        return replace(pending) if pending is not None else None

    def get_decryption_record(self, venue_id: str, key: str) -> DecryptionRecord:
        return replace(self._venue(venue_id).decryption.record(key))

    def get_cached_result(self, venue_id: str, key: str) -> Optional[EncryptedUint]:
        return self._venue(venue_id).cache.peek(key, self._now())

    def store_cached_result(self, venue_id: str, key: str, value: EncryptedUint) -> None:
        with self._invocation(venue_id, "store_cached_result") as inv:
            inv.venue.cache.put(key, value, self._now())

    def cache_stats(self, venue_id: str) -> Dict[str, Any]:
        return self._venue(venue_id).cache.stats()

    def cache_key(self, venue_id: str, input_key: Optional[Any] = None) -> str:
        return configuration_fingerprint(self._venue(venue_id).config, input_key)

    def health_score(self, venue_id: str) -> HealthReport:
        venue = self._venue(venue_id)
        return score_health(venue.config, venue.state.total_liquidity, self._now(), self.settings.risk)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        venue_id: str,
        x: EncryptedUint,
        input_key: Optional[Any] = None,
        budget: Optional[int] = None,
    ) -> EncryptedUint:
        """Encrypted curve price for ``x`` on a venue."""
        with self._invocation(venue_id, "evaluate", budget) as inv:
            result = self.evaluator.evaluate(x, inv.venue.config, inv.venue.cache, self._now(), input_key)
            inv.enforce_budget()
            return result

    # ------------------------------------------------------------------
    # Staged execution
    # ------------------------------------------------------------------

    def pre_trade(self, params: TradeParams, budget: Optional[int] = None) -> PreTradeResult:
        """
        Price a trade before its effects are applied.

        Uses the decrypted curve price when one is available (fresh or last
        known), otherwise the public fallback price, and records a pending
        computation for post-trade reconciliation. Never waits on decryption.

        Raises:
            CurveValidationError: paused curve or non-positive amount
            ComputationBudgetExceeded: cost over budget; nothing is applied
        """
        if params.amount_in <= 0:
            raise CurveValidationError("amount_in must be positive")

        with self._invocation(params.venue_id, "pre_trade", budget) as inv:
            venue = inv.venue
            allowed, reason = self.controls.is_trading_allowed(params.venue_id)
            if not allowed:
                raise CurveValidationError(f"Curve on {params.venue_id} is not active: {reason}")

            now = self._now(params)
            trade_key = self.trade_fingerprint(params, now)

            encrypted_amount = self.backend.encrypt(params.amount_in)
            encrypted_price = self.evaluator.evaluate(
                encrypted_amount, venue.config, venue.cache, now, input_key=params.amount_in
            )
            price_key = self._price_key(venue, params.amount_in)
            venue.decryption.request(encrypted_price, price_key, now)

            decrypted = venue.decryption.poll(price_key)
            volatility = venue.config.risk.volatility_factor
            if decrypted.is_ready:
                final_price = decrypted.value
                stage = TradeStage.RESOLVED
                if not decrypted.was_from_cache:
                    venue.decryption.complete(price_key, decrypted.value)
                inv.emit(
                    "price_resolved",
                    now,
                    trade_key=trade_key,
                    price=final_price,
                    from_cache=decrypted.was_from_cache,
                )
            else:
                reserve_in, reserve_out = venue.state.reserves_for(params.direction)
                final_price = fallback_price(
                    reserve_in,
                    reserve_out,
                    params.amount_in,
                    volatility,
                    self.settings.fees.fallback_discount_bps,
                )
                inv.set_pending(
                    trade_key,
                    PendingTradeComputation(
                        fallback_price=final_price,
                        computed_at=now,
                        decryption_key=price_key,
                    ),
                )
                stage = TradeStage.PENDING_FALLBACK
                logger.warning(
                    f"[{params.venue_id}] decryption not ready, fallback price {final_price} used"
                )
                inv.emit("fallback_price_used", now, trade_key=trade_key, price=final_price)

            cost = inv.enforce_budget()
            fee_bps = dynamic_fee(volatility, cost, self.settings.fees)
            self._apply_trade(venue.state, params, final_price, fee_bps, now, stage)

            return PreTradeResult(
                trade_key=trade_key,
                decryption_key=price_key,
                stage=stage,
                final_price=final_price,
                fee_bps=fee_bps,
                computation_cost=cost,
                used_fallback=stage == TradeStage.PENDING_FALLBACK,
                was_from_cache=decrypted.was_from_cache,
            )

    @staticmethod
    def _apply_trade(
        state: VenueState,
        params: TradeParams,
        final_price: int,
        fee_bps: int,
        now: float,
        stage: TradeStage,
    ) -> None:
        reserve_in, reserve_out = state.reserves_for(params.direction)
        amount_out = min(final_price, reserve_out)
        reserve_in += params.amount_in
        reserve_out -= amount_out
        if TradeDirection(params.direction) == TradeDirection.ZERO_FOR_ONE:
            state.reserve0, state.reserve1 = reserve_in, reserve_out
        else:
            state.reserve1, state.reserve0 = reserve_in, reserve_out

        state.total_volume += params.amount_in
        state.trade_count += 1
        state.fees_collected += params.amount_in * fee_bps // 10_000
        if stage == TradeStage.PENDING_FALLBACK:
            state.fallback_trades += 1
        state.last_trade_at = now

    def post_trade(self, params: TradeParams, budget: Optional[int] = None) -> PostTradeResult:
        """
        Reconcile a trade after its effects were applied.

        A pending computation is polled once more; a fresh result is completed
        into the decryption record so later trades benefit. The applied trade
        is never re-priced. The pending record is cleared either way.
        """
        with self._invocation(params.venue_id, "post_trade", budget) as inv:
            venue = inv.venue
            now = self._now(params)
            trade_key = self.trade_fingerprint(params, now)

            pending = inv.pop_pending(trade_key)
            completed = False
            decrypted_value: Optional[int] = None
            if pending is not None:
                decrypted = venue.decryption.poll(pending.decryption_key)
                if decrypted.is_ready and not decrypted.was_from_cache:
                    venue.decryption.complete(pending.decryption_key, decrypted.value)
                    completed = True
                    decrypted_value = decrypted.value
                    inv.emit(
                        "computation_completed",
                        now,
                        trade_key=trade_key,
                        fallback_price=pending.fallback_price,
                        decrypted_price=decrypted.value,
                    )
                else:
                    logger.debug(f"[{params.venue_id}] decryption still pending at post-trade; record cleared")

            venue.state.settled_trades += 1
            venue.state.recent_volumes.append(params.amount_in)
            cost = inv.enforce_budget()

            return PostTradeResult(
                trade_key=trade_key,
                stage=TradeStage.DONE,
                had_pending=pending is not None,
                completed=completed,
                decrypted_value=decrypted_value,
                fallback_price=pending.fallback_price if pending is not None else None,
                computation_cost=cost,
            )
