"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures deployment and redrive settings from environment variables
with validation and defaults. Supports .env files for local use.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="queue-construct", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="us-east-1", description="AWS region")
    stage: str = Field(default="dev", description="Deployment stage")
    service_name: str = Field(
        default="app",
        description="Service name used for stack and resource names"
    )

    # Construct configuration
    config_file: str = Field(
        default="serverless.yml",
        description="Path to the YAML file declaring the constructs"
    )

    # Redrive settings
    receive_batch_size: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Maximum number of messages fetched per DLQ receive"
    )
    receive_visibility_timeout: int = Field(
        default=30,
        ge=0,
        le=43200,
        description="Seconds a received DLQ message stays hidden while it is resent"
    )
    receive_wait_time: int = Field(
        default=0,
        ge=0,
        le=20,
        description="Receive long-poll wait in seconds (0 = short poll)"
    )

    @field_validator('service_name', 'stage')
    @classmethod
    def validate_names(cls, v: str) -> str:
        """Validate service and stage names can be used in resource names."""
        if not v or not re.match(r'^[a-zA-Z0-9-]+$', v):
            raise ValueError("must contain only letters, numbers and hyphens")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


# Global settings instance
settings = Settings()
