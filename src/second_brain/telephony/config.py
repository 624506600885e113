"""
Telephony provider configuration.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderType(str, Enum):
    """Supported telephony provider types."""

    TWILIO = "twilio"
    MOCK = "mock"


class TelephonyConfig(BaseSettings):
    """Telephony provider configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="TELEPHONY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider selection
    provider_type: ProviderType = Field(default=ProviderType.TWILIO)

    # Provider credentials
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_verify_service_sid: str = Field(default="")
    twilio_phone_number: str = Field(default="")

    # Voice SDK client tokens
    twilio_api_key: str = Field(default="")
    twilio_api_secret: str = Field(default="")
    twilio_twiml_app_sid: str = Field(default="")
    client_token_ttl_seconds: int = Field(default=3600, ge=60, le=86400)

    # Call control
    tts_voice: str = Field(default="Polly.Joanna-Neural")
    media_stream_url: str = Field(
        default="wss://localhost:3000/media-stream",
        description="Websocket base URL the call audio is streamed to",
    )

    request_timeout_seconds: float = Field(default=30.0, gt=0)
    validate_signatures: bool = Field(
        default=False,
        description="Reject provider webhooks without a valid X-Twilio-Signature",
    )


def get_telephony_config() -> TelephonyConfig:
    return TelephonyConfig()
