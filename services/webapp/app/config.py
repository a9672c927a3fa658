# =============================================================================
# Webapp Configuration
# =============================================================================
# Settings loaded from environment variables.
# =============================================================================

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mkt_ingest.registry import DEFAULT_SCHEMA_DIR


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = Field(
        "development", validation_alias=AliasChoices("APP_ENV", "ENVIRONMENT")
    )
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    # Shared-password login
    app_login_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("APP_LOGIN_PASSWORD", "APP_PASSWORD")
    )
    session_cookie_name: str = Field("mkt-session", validation_alias="SESSION_COOKIE_NAME")
    session_max_age_seconds: int = Field(
        60 * 60 * 8, validation_alias="SESSION_MAX_AGE_SECONDS"
    )

    # BigQuery
    google_application_credentials_json: Optional[str] = Field(
        None, validation_alias="GOOGLE_APPLICATION_CREDENTIALS_JSON"
    )
    bigquery_project_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "BIGQUERY_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCP_PROJECT_ID"
        ),
    )

    # Local files
    schema_dir: Path = Field(DEFAULT_SCHEMA_DIR, validation_alias="SCHEMA_DIR")
    staging_dir: Path = Field(
        Path(tempfile.gettempdir()), validation_alias="STAGING_DIR"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
