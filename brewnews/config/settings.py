"""
BrewNews Configuration System
=============================

Environment-driven configuration built on Pydantic models.
Environment variables override Field defaults with clear precedence.

A single ``BrewNewsSettings`` instance is created at startup by
``load_settings()`` and handed to each component that needs it.
"""

import os
from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class SummarizationProviderName(str, Enum):
    """Available summarization providers."""
    GEMINI = "gemini"
    GROQ = "groq"
    NONE = "none"


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FetchSettings(BaseModel):
    """Source fetching configuration."""
    request_timeout: int = Field(default=30, ge=1, le=300, description="Per-source timeout in seconds")
    parallel_sources: int = Field(default=5, ge=1, le=50, description="Concurrent source fetches")
    revalidate_seconds: int = Field(default=3600, ge=0, description="Reuse fetched documents for this long")
    user_agent: str = Field(default="BrewNews/1.0", description="User-Agent header for outgoing requests")


class SummarizationSettings(BaseModel):
    """Summarization collaborator configuration."""
    provider: SummarizationProviderName = Field(default=SummarizationProviderName.GEMINI, description="Summarization provider")
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Groq model")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Model temperature")
    max_tokens: int = Field(default=1024, ge=50, le=8192, description="Maximum tokens per response")
    short_content_threshold: int = Field(default=50, ge=0, description="Stripped length below which the call is skipped")
    fallback_max_chars: int = Field(default=250, ge=20, description="Fallback summary length before truncation")
    timeout: int = Field(default=60, ge=1, le=600, description="Per-item summarization timeout in seconds")
    max_concurrent: int = Field(default=5, ge=1, le=50, description="Concurrent summarization calls")

    def get_api_key(self, provider: SummarizationProviderName) -> Optional[str]:
        """Get API key for specified provider."""
        if provider == SummarizationProviderName.GEMINI:
            return self.gemini_api_key
        elif provider == SummarizationProviderName.GROQ:
            return self.groq_api_key
        return None


class SplitterSettings(BaseModel):
    """Compound-entry splitting configuration."""
    heading_tag: str = Field(default="h2", description="Sub-heading tag that starts a release section")

    @field_validator("heading_tag")
    @classmethod
    def validate_heading_tag(cls, v):
        """Accept 'h3' or '<h3' and store the bare tag name."""
        v = v.strip().lstrip("<").rstrip(">").lower()
        if not v.isalnum():
            raise ValueError("heading_tag must be a bare tag name such as 'h2'")
        return v


class CacheSettings(BaseModel):
    """Snapshot cache and document layout."""
    retention_days: int = Field(default=14, ge=1, le=365, description="Days of items kept in the snapshot")
    items_collection: str = Field(default="feedItems", description="Collection holding cached items")
    sources_collection: str = Field(default="config", description="Collection holding the source list")
    sources_document: str = Field(default="feeds", description="Document key of the source list")
    logs_collection: str = Field(default="logs", description="Collection holding diagnostic logs")


class DatabaseSettings(BaseModel):
    """Document store database configuration."""
    path: str = Field(default="data/brewnews.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/brewnews.log", description="Log file path")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")
    persist_diagnostics: bool = Field(default=True, description="Mirror WARNING+ records into the document store")


class BrewNewsSettings(BaseSettings):
    """Main application settings."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    summarization: SummarizationSettings = Field(default_factory=SummarizationSettings)
    splitter: SplitterSettings = Field(default_factory=SplitterSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="BrewNews", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "BREWNEWS_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors: List[str] = []

        provider = self.summarization.provider
        if provider != SummarizationProviderName.NONE and not self.summarization.get_api_key(provider):
            errors.append(f"Missing API key for summarization provider: {provider.value}")

        try:
            Path(self.database.path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid database path: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def is_production_mode(self) -> bool:
        """Check if running in production mode."""
        return not self.debug and os.getenv("ENV", "development").lower() == "production"

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings(validate: bool = True, **overrides) -> BrewNewsSettings:
    """Load settings from environment variables and defaults.

    Args:
        validate: Run ``validate_configuration`` after loading
        **overrides: Explicit values that win over the environment

    Returns:
        Loaded settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = BrewNewsSettings(**overrides)
        if validate:
            settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e
