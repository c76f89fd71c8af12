"""
Configuration management for Dialectics.

This module provides centralized configuration for all engine components:
- Revision loop bounds
- Elimination policy switches
- Outcome registry storage
- Logging settings
"""

import os
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class EngineConfig(BaseModel):
    """Configuration for the elimination engine and its revision loop."""

    max_revisions: int = Field(
        default=3,
        ge=0,
        description="Maximum revision triggers before a run is forced to 'unresolved'",
    )
    unanswered_challenge_eliminates: bool = Field(
        default=True,
        description="Whether a rebuttable strong challenge left without a rebuttal eliminates",
    )

    @field_validator("max_revisions")
    @classmethod
    def validate_max_revisions(cls, value: int) -> int:
        """Keep the revision bound finite and reasonable."""
        if value > 100:
            raise ValueError("max_revisions should not exceed 100")
        return value


class RegistryConfig(BaseModel):
    """Configuration for the finalized outcome registry."""

    store_dir: str = Field(
        default="outcome_data", description="Directory for persisted outcome records"
    )
    persist: bool = Field(
        default=False, description="Whether finalized outcomes are written to the store"
    )

    @property
    def store_path(self) -> Path:
        """Get absolute path to the store directory."""
        return Path(self.store_dir).resolve()


class LogConfig(BaseModel):
    """Configuration for logging system."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        description="Log message format",
    )
    rotation: str = Field(default="100 MB", description="Log file rotation size")
    retention: str = Field(default="1 month", description="Log file retention period")
    log_dir: str = Field(default="logs", description="Directory for log files")
    enable_file_logging: bool = Field(
        default=False, description="Whether to enable file logging"
    )
    enable_console_logging: bool = Field(
        default=True, description="Whether to enable console logging"
    )


class Config(BaseModel):
    """Main configuration object for Dialectics."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            engine=EngineConfig(
                max_revisions=int(os.getenv("DIALECTICS_MAX_REVISIONS", "3")),
                unanswered_challenge_eliminates=_env_flag(
                    "DIALECTICS_UNANSWERED_ELIMINATES", True
                ),
            ),
            registry=RegistryConfig(
                store_dir=os.getenv("DIALECTICS_STORE_DIR", "outcome_data"),
                persist=_env_flag("DIALECTICS_PERSIST_OUTCOMES", False),
            ),
            logging=LogConfig(
                level=cast(
                    Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    os.getenv("LOG_LEVEL", "INFO"),
                ),
                log_dir=os.getenv("DIALECTICS_LOG_DIR", "logs"),
                enable_file_logging=_env_flag("DIALECTICS_FILE_LOGGING", False),
            ),
        )


# Global configuration instance
# This can be imported throughout the codebase
config = Config.from_env()
