"""Application configuration and environment helpers."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./stock_ledger.db"


class LedgerSettings(BaseSettings):
    """Configuration options for the stock ledger service."""

    app_name: str = Field(default="Stock Ledger")
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="Async SQLAlchemy database URL.",
    )

    default_buy_fee_rate: Decimal = Field(
        default=Decimal("0.0015"),
        description="Buy fee rate given to brokers created without one.",
    )
    default_sell_fee_rate: Decimal = Field(default=Decimal("0.0015"))
    default_tax_rate: Decimal = Field(default=Decimal("0.001"))

    rechain_after_dividend: bool = Field(
        default=True,
        description="Replay affected positions after a dividend is applied or reverted.",
    )

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = Field(default="INFO")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="stock-ledger")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitised dict for logging purposes."""

        hidden = {"database_url"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> LedgerSettings:
    """Return cached settings with optional overrides."""

    if overrides:
        return LedgerSettings(**overrides)
    return LedgerSettings()


__all__ = ["LedgerSettings", "DEFAULT_DATABASE_URL", "get_settings"]
