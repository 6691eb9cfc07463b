from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalise URL settings so paths can be appended safely."""

        super().model_post_init(__context)

        for name in ("bifrost_url", "horizon_url"):
            value = getattr(self, name)
            if value and value.endswith("/"):
                object.__setattr__(self, name, value.rstrip("/"))

    log_level: str = Field(default="INFO", description="Logging level")

    # Session defaults
    network: str = Field(default="test", description="Stellar network selector: live or test")
    bifrost_url: str = Field(default="", description="Base URL of the Bifrost bridge server")
    horizon_url: str = Field(
        default="https://horizon-testnet.stellar.org",
        description="Base URL of the Horizon server",
    )
    horizon_allow_http: bool = Field(
        default=False,
        description="Allow connecting to a Horizon server over plain http",
    )
    recovery_public_key: str = Field(
        default="",
        description="Account that receives the deposit account balance on recovery",
    )

    # Transport
    request_timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    stream_reconnect_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Delay before reconnecting the event stream when the server sends no retry hint",
    )

    # Transactions
    base_fee: int = Field(default=100, ge=100, description="Base fee per operation, in stroops")

    @property
    def has_bifrost_url(self) -> bool:
        return bool(self.bifrost_url)

    @property
    def has_recovery_key(self) -> bool:
        return bool(self.recovery_public_key)


# Global settings instance
settings = Settings()
