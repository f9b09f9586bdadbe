"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class TimeoutConfig(BaseModel):
    """Timeouts applied by the capability selector."""

    check_seconds: float = Field(
        default=2.0, alias="SWITCHBOARD_AI_CHECK_TIMEOUT", description="Per-capability scoring timeout"
    )
    execution_seconds: float = Field(
        default=30.0,
        alias="SWITCHBOARD_AI_EXECUTION_TIMEOUT",
        description="Timeout for the selected capability's execution",
    )
    arbiter_seconds: float = Field(
        default=30.0, alias="SWITCHBOARD_AI_ARBITER_TIMEOUT", description="Timeout for the fallback arbiter call"
    )

    model_config = {"populate_by_name": True}


class SelectionConfig(BaseModel):
    """Capability selection configuration."""

    accept_threshold: float = Field(
        default=0.5,
        alias="SWITCHBOARD_AI_ACCEPT_THRESHOLD",
        description="Scores strictly above this value are accepted without arbitration",
    )
    arbiter_model: Optional[str] = Field(
        default=None,
        alias="SWITCHBOARD_AI_ARBITER_MODEL",
        description="Pydantic AI model name used by the fallback arbiter (e.g. openai:gpt-4o)",
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="SWITCHBOARD_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="SWITCHBOARD_AI_LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the rotating log file",
        alias="SWITCHBOARD_AI_LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Write logs to a file under log_file_dir",
        alias="SWITCHBOARD_AI_ENABLE_FILE_LOGGING",
    )
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Size at which the log file is rotated",
        alias="SWITCHBOARD_AI_LOG_FILE_MAX_BYTES",
    )
    log_file_backup_count: int = Field(
        default=5,
        description="Number of rotated log files to keep",
        alias="SWITCHBOARD_AI_LOG_FILE_BACKUP_COUNT",
    )

    # =====================================================================
    # Selection Configuration
    # =====================================================================
    check_timeout: float = Field(default=2.0, alias="SWITCHBOARD_AI_CHECK_TIMEOUT")
    execution_timeout: float = Field(default=30.0, alias="SWITCHBOARD_AI_EXECUTION_TIMEOUT")
    arbiter_timeout: float = Field(default=30.0, alias="SWITCHBOARD_AI_ARBITER_TIMEOUT")
    accept_threshold: float = Field(default=0.5, alias="SWITCHBOARD_AI_ACCEPT_THRESHOLD")
    arbiter_model: Optional[str] = Field(default=None, alias="SWITCHBOARD_AI_ARBITER_MODEL")

    # =====================================================================
    # Layer Configuration
    # =====================================================================
    refusal_message: str = Field(
        default="Sorry, I can't help with that request.",
        description="Canned response used when a response filter suppresses output",
        alias="SWITCHBOARD_AI_REFUSAL_MESSAGE",
    )

    # =====================================================================
    # Monitoring Configuration
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: str = Field(default="", alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="switchboard-ai", alias="LOGFIRE_SERVICE_NAME")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def timeouts(self) -> TimeoutConfig:
        """Get selector timeouts from environment variables."""
        return TimeoutConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def selection(self) -> SelectionConfig:
        """Get selection configuration from environment variables."""
        return SelectionConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
