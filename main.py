"""
Confidential Curve Engine - simulation entry point
"""
import argparse
import json
import sys
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import Settings
from src.curves.types import CurveConfiguration, CurveType, RiskParameters
from src.fhe.backend import MockFheBackend
from src.fhe.decryption_service import MockDecryptionService
from src.hooks.curve_hook import ConfidentialCurveHook
from src.hooks.types import TradeDirection, TradeParams


class SimulationClock:
    """Manually advanced clock shared by the engine and the mock coprocessor."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def setup_logging(settings: Settings) -> None:
    """Configure logging"""
    logger.remove()  # Remove default handler

    # Console logging
    logger.add(
        sys.stderr,
        level=settings.logging.log_level,
        format=settings.logging.log_format,
    )

    # File logging
    if settings.logging.log_to_file:
        logger.add(
            settings.logging.log_file_path,
            level=settings.logging.log_level,
            format=settings.logging.log_format,
            rotation=f"{settings.logging.log_max_size_mb} MB",
            retention=settings.logging.log_backup_count,
        )


class CurveEngineApp:
    """Wires the mock backend, decryption coprocessor and hook together"""

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[SimulationClock] = None):
        self.settings = settings or Settings.load()
        self.clock = clock or SimulationClock()
        self.backend = MockFheBackend(bit_width=self.settings.engine.fhe_bit_width)
        self.decryption_service = MockDecryptionService(
            self.backend,
            latency_seconds=self.settings.engine.decryption_latency_seconds,
            clock=self.clock,
        )
        self.hook = ConfidentialCurveHook(
            self.backend,
            self.decryption_service,
            settings=self.settings,
            clock=self.clock,
        )

    def create_demo_venue(self, venue_id: str, reserve: int) -> None:
        """Linear 1:1 curve clamped to a tenth of the reserve."""
        encrypt = self.backend.encrypt
        config = CurveConfiguration(
            curve_type=CurveType.LINEAR,
            coefficients=[encrypt(1), encrypt(0), encrypt(0), encrypt(reserve // 10)],
            risk=RiskParameters(
                max_leverage=10,
                volatility_factor=300,
                max_slippage=100,
                min_liquidity=reserve // 2,
                time_decay_rate=0,
            ),
            strategist="demo-strategist",
        )
        self.hook.initialize(venue_id, config, reserve0=reserve, reserve1=reserve)

    def simulate(self, trades: int, amount: int, reserve: int, step_seconds: float) -> Dict[str, Any]:
        venue_id = "demo-venue"
        self.create_demo_venue(venue_id, reserve)

        resolved = 0
        completed = 0
        for i in range(trades):
            params = TradeParams(
                venue_id=venue_id,
                amount_in=amount,
                direction=TradeDirection.ZERO_FOR_ONE if i % 2 == 0 else TradeDirection.ONE_FOR_ZERO,
                originator=f"trader-{i % 3}",
                timestamp=self.clock(),
            )
            pre = self.hook.pre_trade(params)
            if not pre.used_fallback:
                resolved += 1
            self.clock.advance(step_seconds)
            post = self.hook.post_trade(params)
            if post.completed:
                completed += 1

        return {
            "trades": trades,
            "resolved_confidentially": resolved,
            "fallback_trades": trades - resolved,
            "computations_completed": completed,
            "venue_state": self.hook.get_venue_state(venue_id).to_dict(),
            "cache": self.hook.cache_stats(venue_id),
            "health": self.hook.health_score(venue_id).to_dict(),
            "backend_cost_units": self.backend.cost_units,
        }


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Confidential curve pricing engine")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run staged trades against the mock backend")
    sim.add_argument("--trades", type=int, default=10)
    sim.add_argument("--amount", type=int, default=1_000)
    sim.add_argument("--reserve", type=int, default=1_000_000)
    sim.add_argument("--step-seconds", type=float, default=5.0)

    args = parser.parse_args(argv)
    settings = Settings.load()
    setup_logging(settings)

    if args.command == "simulate":
        app = CurveEngineApp(settings)
        summary = app.simulate(args.trades, args.amount, args.reserve, args.step_seconds)
        print(json.dumps(summary, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
