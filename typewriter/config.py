"""
Configuration management for the typewriter service
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from typewriter.schemas.typewriter import DEFAULT_PHRASES, TypewriterOptions
from typewriter.utils.logger import LogLevel


class Settings(BaseSettings):
    """Application settings loaded from environment variables (prefix TYPEWRITER_)"""

    model_config = SettingsConfigDict(
        env_prefix="TYPEWRITER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Engine Configuration
    # Lists are read from the environment as JSON, e.g. TYPEWRITER_PHRASES='["Hi", "Yo"]'
    phrases: List[str] = Field(default_factory=lambda: list(DEFAULT_PHRASES))
    typing_interval_ms: float = Field(default=100, ge=0)
    deleting_interval_ms: float = Field(default=50, ge=0)
    pause_duration_ms: float = Field(default=2000, ge=0)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    # Logging Configuration
    log_level: LogLevel = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    enable_colors: bool = Field(default=True)

    # Frames buffered per SSE client before the oldest are dropped
    stream_queue_size: int = Field(default=64, ge=1)

    def typewriter_options(self) -> TypewriterOptions:
        return TypewriterOptions(
            phrases=self.phrases,
            typing_interval_ms=self.typing_interval_ms,
            deleting_interval_ms=self.deleting_interval_ms,
            pause_duration_ms=self.pause_duration_ms,
        )


# Global settings instance
settings = Settings()
