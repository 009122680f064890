"""
Confidential Curve Engine API Server
FastAPI read-only surface exposing venue state, curve configuration and health
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from loguru import logger
import uvicorn

# Load environment variables
load_dotenv(Path(__file__).parent / ".env")

from main import CurveEngineApp
from src.exceptions import VenueNotFoundError
from src.hooks.curve_hook import ConfidentialCurveHook


# --- Pydantic Models ---

class VenueStateResponse(BaseModel):
    reserve0: int
    reserve1: int
    total_liquidity: int
    total_volume: int
    rolling_volume: int
    trade_count: int
    settled_trades: int
    fallback_trades: int
    fees_collected: int
    last_trade_at: Optional[float] = None


class RiskResponse(BaseModel):
    max_leverage: int
    volatility_factor: int
    max_slippage: int
    min_liquidity: int
    time_decay_rate: int


class CurveConfigResponse(BaseModel):
    curve_type: str
    coefficient_count: int
    coefficient_handles: List[str]
    has_bounds: bool
    risk: RiskResponse
    strategist: str
    is_active: bool
    last_update: float


class HealthResponse(BaseModel):
    score: int
    is_healthy: bool
    reasons: List[str]
    snapshot: Dict[str, float]


class CacheStatsResponse(BaseModel):
    entries: int
    hits: int
    misses: int
    hit_rate: float
    ttl_seconds: float


def create_app(hook: ConfidentialCurveHook) -> FastAPI:
    app = FastAPI(
        title="Confidential Curve Engine API",
        description="Read-only view of confidential-curve venues",
        version="1.0.0",
    )

    def _call(venue_id: str, fn) -> Any:
        try:
            return fn(venue_id)
        except VenueNotFoundError:
            raise HTTPException(status_code=404, detail=f"Unknown venue {venue_id}")

    # --- API Endpoints ---

    @app.get("/")
    async def root():
        return {
            "message": "Confidential Curve Engine API",
            "version": "1.0.0",
            "venues": len(hook.venue_ids()),
        }

    @app.get("/api/venues", response_model=List[str])
    async def list_venues():
        return hook.venue_ids()

    @app.get("/api/venues/{venue_id}/state", response_model=VenueStateResponse)
    async def get_state(venue_id: str):
        return _call(venue_id, hook.get_venue_state).to_dict()

    @app.get("/api/venues/{venue_id}/config", response_model=CurveConfigResponse)
    async def get_config(venue_id: str):
        return _call(venue_id, hook.get_curve_configuration).to_dict()

    @app.get("/api/venues/{venue_id}/health", response_model=HealthResponse)
    async def get_health(venue_id: str):
        return _call(venue_id, hook.health_score).to_dict()

    @app.get("/api/venues/{venue_id}/cache", response_model=CacheStatsResponse)
    async def get_cache(venue_id: str):
        return _call(venue_id, hook.cache_stats)

    return app


engine_app = CurveEngineApp()
engine_app.create_demo_venue("demo-venue", reserve=1_000_000)
app = create_app(engine_app.hook)
logger.info("Curve engine API ready (demo venue loaded)")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8001)
