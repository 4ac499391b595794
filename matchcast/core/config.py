"""Application configuration using Pydantic Settings"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_PERSONA = "Funny, energetic commentator like a friend watching the game."
DEFAULT_PRIORITY_KEYWORDS = ["Goal", "Penalty", "Red Card", "Yellow Card", "VAR"]
DATA_PROVIDERS = ("api-football", "sportmonks")


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Event source (remote commentary producer)
    event_source_url: str = Field(default="", description="Commentary source webhook URL")
    match_id: str = Field(default="", description="Initial match / context id")
    persona: str = Field(default=DEFAULT_PERSONA, description="Commentator persona")
    data_provider: str = Field(default="api-football", description="Match data provider")

    # Credentials forwarded to the source
    api_football_key: str = Field(default="", description="API-Football key")
    sportmonks_key: str = Field(default="", description="Sportmonks key")
    elevenlabs_key: str = Field(default="", description="ElevenLabs key")
    openrouter_key: str = Field(default="", description="OpenRouter key")

    # Scheduling
    auto_play: bool = Field(default=True, description="Promote queued items automatically")
    poll_interval_seconds: float = Field(default=1.0, description="Delay between poll ticks")
    request_timeout_seconds: float = Field(default=8.0, description="Hard poll request lifetime")
    config_retry_seconds: float = Field(
        default=1.0, description="Retry delay while configuration is incomplete"
    )
    full_poll_every: int = Field(default=5, description="Every Nth poll asks for upstream data")
    settle_delay_seconds: float = Field(
        default=0.5, description="Pause before starting a media item"
    )
    start_on_launch: bool = Field(default=False, description="Start broadcasting immediately")
    priority_keywords: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PRIORITY_KEYWORDS),
        description="Labels containing any of these jump the normal backlog",
    )

    # Server
    frontend_url: str = Field(default="http://localhost:3000", description="Frontend URL for CORS")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @field_validator("data_provider")
    @classmethod
    def validate_data_provider(cls, v: str) -> str:
        if v not in DATA_PROVIDERS:
            logger.warning(f"Unknown data provider '{v}', defaulting to api-football")
            return "api-football"
        return v

    @field_validator("priority_keywords", mode="before")
    @classmethod
    def parse_priority_keywords(cls, v: Any) -> Any:
        """Accept a JSON list or a comma-separated string from the environment"""
        if not isinstance(v, str):
            return v
        if v.strip().startswith("["):
            return json.loads(v)
        return [keyword.strip() for keyword in v.split(",") if keyword.strip()]

    @field_validator(
        "poll_interval_seconds",
        "request_timeout_seconds",
        "config_retry_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("settle_delay_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("full_poll_every")
    @classmethod
    def validate_full_poll_every(cls, v: int) -> int:
        if v < 1:
            raise ValueError("full_poll_every must be at least 1")
        return v

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS allowed origins"""
        return [self.frontend_url]

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
