"""Shared fixtures: a mock backend, a manual clock and a wired hook."""

from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from config.settings import EngineSettings, FeeSettings, LoggingSettings, RiskLimitSettings, Settings
from main import SimulationClock
from src.curves.types import CurveConfiguration, CurveType, RiskParameters
from src.fhe.backend import MockFheBackend
from src.fhe.decryption_service import MockDecryptionService
from src.hooks.curve_hook import ConfidentialCurveHook
from src.numeric.fixed_point import FixedPointMath

START_TIME = 1_700_000_000.0
STRATEGIST = "strategist-1"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        engine=EngineSettings(
            precision=10**12,
            calc_precision=10**6,
            fhe_bit_width=128,
            cache_ttl_seconds=300,
            trade_time_bucket_seconds=60,
            max_computation_budget=5_000,
            decryption_latency_seconds=12.0,
            rolling_volume_window=100,
        ),
        fees=FeeSettings(
            base_fee_bps=30,
            volatility_weight_bps=1_000,
            computation_fee_per_kunit=10,
            max_fee_bps=1_000,
            fallback_discount_bps=9_500,
        ),
        risk=RiskLimitSettings(),
        logging=LoggingSettings(),
    )


@pytest.fixture
def clock() -> SimulationClock:
    return SimulationClock(start=START_TIME)


@pytest.fixture
def backend() -> MockFheBackend:
    return MockFheBackend(bit_width=128)


@pytest.fixture
def fp(backend: MockFheBackend) -> FixedPointMath:
    return FixedPointMath(backend)


@pytest.fixture
def service(backend: MockFheBackend, clock: SimulationClock) -> MockDecryptionService:
    return MockDecryptionService(backend, latency_seconds=12.0, clock=clock)


@pytest.fixture
def hook(backend, service, settings, clock) -> ConfidentialCurveHook:
    return ConfidentialCurveHook(backend, service, settings=settings, clock=clock)


@pytest.fixture
def make_config(backend: MockFheBackend) -> Callable[..., CurveConfiguration]:
    def _make(
        curve_type=CurveType.LINEAR,
        coefficients: Optional[List[int]] = None,
        volatility: int = 500,
        max_leverage: int = 10,
        max_slippage: int = 100,
        min_liquidity: int = 100,
        strategist: str = STRATEGIST,
    ) -> CurveConfiguration:
        plain = coefficients if coefficients is not None else [2, 5]
        return CurveConfiguration(
            curve_type=curve_type,
            coefficients=[backend.encrypt(c) for c in plain],
            risk=RiskParameters(
                max_leverage=max_leverage,
                volatility_factor=volatility,
                max_slippage=max_slippage,
                min_liquidity=min_liquidity,
            ),
            strategist=strategist,
        )

    return _make
