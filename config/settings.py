"""
Configuration settings for the confidential curve pricing engine
"""
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings
from pathlib import Path


class EngineSettings(BaseSettings):
    """Core engine configuration"""
    model_config = {"env_file": ".env", "env_prefix": "CURVE_", "extra": "ignore"}

    precision: int = Field(10**12, gt=1, description="Fixed-point scaling constant")
    calc_precision: int = Field(10**6, gt=1, description="Coarse cross-check precision")
    fhe_bit_width: int = Field(128, ge=64, le=256, description="Encrypted integer width")
    cache_ttl_seconds: int = Field(300, ge=1)
    trade_time_bucket_seconds: int = Field(60, ge=1)
    max_computation_budget: int = Field(5_000, gt=0, description="Cost units per invocation")
    decryption_latency_seconds: float = Field(12.0, ge=0)
    rolling_volume_window: int = Field(100, ge=1, description="Trades kept in rolling volume")


class FeeSettings(BaseSettings):
    """Dynamic fee configuration (basis points)"""
    model_config = {"env_file": ".env", "env_prefix": "FEE_", "extra": "ignore"}

    base_fee_bps: int = Field(30, ge=0, le=10_000)
    volatility_weight_bps: int = Field(1_000, ge=0, le=10_000, description="Share of volatility added to fee")
    computation_fee_per_kunit: int = Field(10, ge=0, description="Fee bps per 1000 cost units")
    max_fee_bps: int = Field(1_000, ge=0, le=10_000)
    fallback_discount_bps: int = Field(9_500, ge=0, le=10_000, description="Fallback output share when reserves are empty")


class RiskLimitSettings(BaseSettings):
    """Plaintext risk bound limits and health thresholds"""
    model_config = {"env_file": ".env", "env_prefix": "RISK_", "extra": "ignore"}

    max_leverage_cap: int = Field(100, ge=1)
    max_volatility_bps: int = Field(10_000, ge=0)
    max_slippage_bps: int = Field(1_000, ge=0, le=10_000)
    max_time_decay_rate: int = Field(10_000, ge=0)

    health_high_volatility_bps: int = Field(1_000, ge=0)
    health_stale_after_seconds: int = Field(86_400, ge=1)
    health_threshold: int = Field(70, ge=0, le=100)


class LoggingSettings(BaseSettings):
    """Logging configuration"""
    model_config = {"env_file": ".env", "extra": "ignore"}

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_to_file: bool = False
    log_file_path: Path = Path("logs/curve_engine.log")
    log_max_size_mb: int = 100
    log_backup_count: int = 10
    log_format: str = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"


class Settings(BaseSettings):
    """Main settings aggregator"""
    model_config = {"extra": "ignore"}  # Sub-settings read their own env vars

    engine: EngineSettings = Field(default_factory=EngineSettings)
    fees: FeeSettings = Field(default_factory=FeeSettings)
    risk: RiskLimitSettings = Field(default_factory=RiskLimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment"""
        return cls(
            engine=EngineSettings(),
            fees=FeeSettings(),
            risk=RiskLimitSettings(),
            logging=LoggingSettings(),
        )


# Global settings instance
settings = Settings.load()
