"""
Core configuration settings for the Kasir POS service.
"""
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


STORAGE_BACKENDS = ("memory", "sql", "redis")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "Kasir POS"
    debug: bool = False
    api_v1_str: str = "/api/v1"

    # Storage
    storage_backend: str = "sql"
    storage_namespace: str = "baby-store"
    storage_lock_timeout: int = 10  # seconds

    # Database
    database_url: str = "sqlite:///./kasir.db"

    # Redis
    redis_url: str = "redis://localhost:6379"
    redis_db: int = 0

    # Checkout
    tax_rate: float = 0.11

    # Ledger capacity
    default_min_stock: int = 5
    transaction_history_limit: int = 100
    daily_sales_limit: int = 30
    stock_movement_limit: int = 500
    statistics_recent_days: int = 7

    # Store
    store_timezone: str = "Asia/Jakarta"
    store_name: str = "TOKO PERLENGKAPAN BAYI"
    store_address: str = "Jl. Ceria Anak No. 123, Jakarta"
    store_phone: str = "(021) 1234-5678"
    store_tax_id: str = "12.345.678.9-012.000"
    cashier_name: str = "Admin"

    # QRIS simulation
    qris_success_rate: float = 0.7
    qris_confirmation_delay: float = 2.0  # seconds
    qris_timeout: float = 300  # 5 minutes

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v):
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"Storage backend must be one of {', '.join(STORAGE_BACKENDS)}")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v):
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis://")
        return v

    @field_validator("tax_rate")
    @classmethod
    def validate_tax_rate(cls, v):
        if not 0 <= v < 1:
            raise ValueError("Tax rate must be between 0 and 1")
        return v

    @field_validator("qris_success_rate")
    @classmethod
    def validate_success_rate(cls, v):
        if not 0 <= v <= 1:
            raise ValueError("QRIS success rate must be between 0 and 1")
        return v

    @field_validator("default_min_stock", "statistics_recent_days")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @field_validator("transaction_history_limit", "daily_sales_limit", "stock_movement_limit")
    @classmethod
    def validate_capacity(cls, v):
        # the newest entry must always be retained
        if v < 1:
            raise ValueError("Ledger capacity must be at least 1")
        return v

    @field_validator("store_timezone")
    @classmethod
    def validate_timezone(cls, v):
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "console"):
            raise ValueError("Log format must be 'json' or 'console'")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
