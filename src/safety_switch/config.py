"""Configuration management for the Safety Switch using Pydantic settings.

This module handles all configuration for the confirmation gate, loading from
environment variables and .env files with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main configuration settings for the Safety Switch.

    Settings are loaded from environment variables and .env files.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gate Behaviour
    safety_switch_enabled: bool = Field(
        default=True,
        description="Hold actions for operator confirmation (False makes the gate transparent)",
    )
    confirmation_phrase: str = Field(
        default="CONFIRM",
        description="Literal phrase required to confirm high and critical actions",
        min_length=1,
    )
    max_pending_actions: int | None = Field(
        default=10,
        description="Maximum number of actions awaiting confirmation (None for unlimited)",
        ge=1,
    )
    confirmation_timeout: float | None = Field(
        default=None,
        description="Seconds before an unanswered action is cancelled (None disables the timeout)",
        gt=0,
    )
    retain_results_on_clear: bool = Field(
        default=False,
        description="Keep result ledger rows when completed actions are cleared",
    )

    # Application Settings
    safety_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the application",
    )
    safety_log_file: Path | None = Field(
        default=None,
        description="Optional file path to write logs (defaults to console only)",
    )
    safety_debug_mode: bool = Field(
        default=False,
        description="Enable debug mode with detailed transition logging",
    )

    @field_validator("safety_log_file", mode="before")
    @classmethod
    def expand_paths(cls, v: str | Path | None) -> Path | None:
        """Expand relative paths to absolute paths."""
        if v is None:
            return None
        path = Path(v)
        return path.expanduser().resolve()

    @field_validator("confirmation_phrase", mode="after")
    @classmethod
    def strip_phrase(cls, v: str) -> str:
        """Reject phrases that are only whitespace."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("confirmation_phrase must not be blank")
        return stripped

    def model_dump_safe(self) -> dict[str, str]:
        """Dump settings as a dictionary with safe string representations.

        Useful for logging or displaying configuration.
        """
        return {
            "enabled": str(self.safety_switch_enabled),
            "confirmation_phrase": self.confirmation_phrase,
            "max_pending_actions": str(self.max_pending_actions or "unlimited"),
            "confirmation_timeout": (
                f"{self.confirmation_timeout}s" if self.confirmation_timeout else "none"
            ),
            "retain_results_on_clear": str(self.retain_results_on_clear),
            "log_level": self.safety_log_level,
            "log_file": str(self.safety_log_file) if self.safety_log_file else "console",
        }


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Creates and caches the settings on first call.

    Returns:
        Settings: The global settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment/files.

    Useful for testing or when configuration changes at runtime.

    Returns:
        Settings: The newly loaded settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
