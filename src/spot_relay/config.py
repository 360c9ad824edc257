"""Configuration loading from environment variables and the .env file."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class LogFormat(str, Enum):
    """Log output format."""

    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Relay settings.

    Loaded from environment variables and the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==================== Binance API ====================
    binance_api_key: str = Field(default="", description="Binance API key")
    binance_api_secret: str = Field(default="", description="Binance API secret")
    binance_base_url: str = Field(
        default="https://api.binance.us",
        description="REST base URL",
    )
    binance_fee: float = Field(
        default=0.001,
        ge=0.0,
        lt=1.0,
        description="Taker fee rate capitalized into buy-side cost basis",
    )

    # ==================== Transport ====================
    request_timeout: float = Field(default=10.0, gt=0.0, description="Per-call timeout (seconds)")
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per idempotent read, including the first",
    )
    max_concurrent_requests: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Outbound calls allowed in flight at once",
    )

    # ==================== Cache TTLs ====================
    account_ttl: float = Field(default=5.0, ge=0.0, description="Account snapshot TTL (seconds)")
    trades_ttl: float = Field(default=60.0, ge=0.0, description="Trade history TTL (seconds)")
    price_ttl: float = Field(default=5.0, ge=0.0, description="Last price TTL (seconds)")
    exchange_info_ttl: float = Field(
        default=3600.0,
        ge=0.0,
        description="Trading rule metadata TTL (seconds)",
    )

    # ==================== Positions ====================
    quote_assets: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["USDT", "USDC", "USD"],
        description="Quote currencies, in symbol resolution priority order",
    )
    min_position_value: float = Field(
        default=10.0,
        ge=0.0,
        description="Positions worth less than this (quote units) are dust",
    )

    # ==================== Logging ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format",
    )

    @field_validator("quote_assets", mode="before")
    @classmethod
    def parse_quote_assets(cls, v: str | list[str]) -> list[str]:
        """Accept a comma separated string such as ``USDT,USDC,USD``."""
        if isinstance(v, str):
            v = v.split(",")
        assets = [str(part).strip().upper() for part in v if str(part).strip()]
        if not assets:
            raise ValueError("quote_assets must not be empty")
        return assets

    @field_validator("binance_base_url")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")

    def validate_credentials(self) -> list[str]:
        """Return the names of missing credential variables."""
        missing = []
        if not self.binance_api_key:
            missing.append("BINANCE_API_KEY")
        if not self.binance_api_secret:
            missing.append("BINANCE_API_SECRET")
        return missing


# Lazily built global instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Rebuild the global settings instance from the environment."""
    global _settings
    _settings = Settings()
    return _settings
