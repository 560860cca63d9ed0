# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration, all env-driven.
`Settings` reads the environment once; `HotlineConfig` is the frozen view
handed to the call flow through dependency injection.
"""

import os

from pydantic import BaseModel, ConfigDict, Field


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "hotline-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8080"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./hotline.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    SCHEDULE_FILE: str = os.getenv("SCHEDULE_FILE", "schedule.json")
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "America/Chicago")
    SHIFT_CHANGE_HOUR: int = int(os.getenv("SHIFT_CHANGE_HOUR", "17"))

    DEFAULT_FORWARD_NUMBER: str = os.getenv("DEFAULT_FORWARD_NUMBER", "")
    TWILIO_CALLER_ID: str = os.getenv("TWILIO_CALLER_ID", "")
    ADMIN_NUMBERS: list[str] = [
        n.strip() for n in os.getenv("ADMIN_NUMBERS", "").split(",") if n.strip()
    ]
    ADMIN_API_TOKEN: str = os.getenv("ADMIN_API_TOKEN", "")

    GREETING_AUDIO_URL: str = os.getenv(
        "GREETING_AUDIO_URL",
        "https://d362unqrwzvzrb.cloudfront.net/hotline-greeting.wav",
    )
    TWILIO_VOICE: str = os.getenv("TWILIO_VOICE", "Polly.Joanna")
    DIAL_TIMEOUT_SECONDS: int = int(os.getenv("DIAL_TIMEOUT_SECONDS", "25"))
    MENU_GATHER_TIMEOUT_SECONDS: int = int(os.getenv("MENU_GATHER_TIMEOUT_SECONDS", "5"))
    NUMBER_GATHER_TIMEOUT_SECONDS: int = int(
        os.getenv("NUMBER_GATHER_TIMEOUT_SECONDS", "15")
    )


    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()


class HotlineConfig(BaseModel):
    """Immutable call-flow configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    default_forward_number: str = ""
    caller_id: str = ""
    admin_numbers: frozenset[str] = frozenset()
    shift_change_hour: int = Field(default=17, ge=0, le=23)
    greeting_audio_url: str = ""
    voice: str = "Polly.Joanna"
    dial_timeout: int = Field(default=25, ge=1)
    menu_gather_timeout: int = Field(default=5, ge=1)
    number_gather_timeout: int = Field(default=15, ge=1)

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "HotlineConfig":
        return cls(
            default_forward_number=source.DEFAULT_FORWARD_NUMBER,
            caller_id=source.TWILIO_CALLER_ID,
            admin_numbers=frozenset(source.ADMIN_NUMBERS),
            shift_change_hour=source.SHIFT_CHANGE_HOUR,
            greeting_audio_url=source.GREETING_AUDIO_URL,
            voice=source.TWILIO_VOICE,
            dial_timeout=source.DIAL_TIMEOUT_SECONDS,
            menu_gather_timeout=source.MENU_GATHER_TIMEOUT_SECONDS,
            number_gather_timeout=source.NUMBER_GATHER_TIMEOUT_SECONDS,
        )
