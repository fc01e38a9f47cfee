"""Configuration settings for the report lifecycle engine."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="LIMS Report Lifecycle")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Database
    database_url: str = Field(default="sqlite:///./lims_reports.db")
    database_busy_timeout: float = Field(default=30.0)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    log_json: bool = Field(default=False)

    # Workflow policy
    enable_audit_logging: bool = Field(default=True)
    require_change_reason: bool = Field(default=True)
    require_expected_version: bool = Field(default=True)
    correction_default_reason: str = Field(default="Corrections requested")


# Create global settings instance
settings = Settings()
