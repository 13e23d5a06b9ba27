"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)

    # Bandwidth account (required)
    account_id: str | None = Field(default=None)
    username: str | None = Field(default=None)
    password: str | None = Field(default=None)
    phone_number: str | None = Field(
        default=None,
        description="Voice API phone number the browser user is asked to dial, E.164.",
    )

    # WebRTC service
    rtc_api_url: str = Field(
        default="https://api.webrtc.bandwidth.com/v1",
        description="Base URL of the WebRTC HTTP API.",
    )
    rtc_sip_uri: str = Field(
        default="sip:sipx.webrtc.bandwidth.com:5060",
        description="SIP URI the Voice API transfers inbound calls to.",
    )
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL used for WebRTC event callbacks (e.g. https://<ngrok>.ngrok-free.app).",
    )
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    client_mode: Literal["device_token", "conference"] = Field(
        default="device_token",
        description="Shape of the /connectionInfo payload handed to the browser.",
    )
    max_participants: int | None = Field(
        default=None,
        ge=2,
        description="Upper bound on participants in the session. Unset means unlimited.",
    )

    frontend_dir: Path = Field(default=Path("./frontend"))

    @field_validator("rtc_api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def missing_credentials(self) -> list[str]:
        """Names of required environment variables that are not set."""

        required = {
            "ACCOUNT_ID": self.account_id,
            "USERNAME": self.username,
            "PASSWORD": self.password,
        }
        return [name for name, value in required.items() if not value]

    @property
    def event_callback_url(self) -> str | None:
        if not self.public_base_url:
            return None
        return f"{self.public_base_url.rstrip('/')}/rtcEvents"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
