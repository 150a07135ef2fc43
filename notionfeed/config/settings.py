"""
NotionFeed Configuration System
==============================

Simple configuration management with environment variables and Pydantic models.
Environment variables override Field defaults, and command-line values override
environment variables.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class NotionSettings(BaseModel):
    """Notion API access and the two databases the ingester works on."""
    api_token: str = Field(default="", description="Notion integration token")
    source_database_id: str = Field(default="", description="Database listing the feeds to poll")
    feed_database_id: str = Field(default="", description="Database receiving feed entries")
    api_base_url: str = Field(default="https://api.notion.com/v1", description="Notion REST API base URL")
    api_version: str = Field(default="2022-02-22", description="Value of the Notion-Version header")
    page_size: Optional[int] = Field(default=None, ge=1, le=100, description="Page size for database queries (provider default when unset)")

    @field_validator('api_base_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Paths are appended with a leading slash."""
        return v.rstrip('/')


class LimitsSettings(BaseModel):
    """Network limits."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="Request timeout in seconds")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class NotionFeedSettings(BaseSettings):
    """Main application settings."""

    notion: NotionSettings = Field(default_factory=NotionSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="NotionFeed", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "NOTIONFEED_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        required = {
            "notion.api_token": self.notion.api_token,
            "notion.source_database_id": self.notion.source_database_id,
            "notion.feed_database_id": self.notion.feed_database_id,
        }
        missing = [key for key, value in required.items() if not value.strip()]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                config_key=missing[0],
                error_code=ErrorCode.CONFIG_MISSING,
            )

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except Exception as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def _apply_override(value: Optional[str], config_key: str) -> Optional[str]:
    """Return a command-line override, rejecting explicitly empty values."""
    if value is None:
        return None
    if not value.strip():
        raise ConfigurationError(
            f"Invalid config variable: {config_key} is empty",
            config_key=config_key,
            error_code=ErrorCode.CONFIG_INVALID,
        )
    return value.strip()


def load_settings(
    source_database_id: Optional[str] = None,
    feed_database_id: Optional[str] = None,
) -> NotionFeedSettings:
    """Load settings from environment variables, command-line values and defaults.

    Args:
        source_database_id: Source database ID given on the command line
        feed_database_id: Feed database ID given on the command line

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    source_override = _apply_override(source_database_id, "notion.source_database_id")
    feed_override = _apply_override(feed_database_id, "notion.feed_database_id")

    try:
        settings = NotionFeedSettings()

        if source_override:
            settings.notion.source_database_id = source_override
        if feed_override:
            settings.notion.feed_database_id = feed_override

        settings.validate_configuration()

        return settings

    except Exception as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        )


# Global settings instance
_settings: Optional[NotionFeedSettings] = None


def get_settings(
    reload: bool = False,
    source_database_id: Optional[str] = None,
    feed_database_id: Optional[str] = None,
) -> NotionFeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings
        source_database_id: Command-line override, applied on (re)load
        feed_database_id: Command-line override, applied on (re)load

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings(source_database_id, feed_database_id)

    return _settings
