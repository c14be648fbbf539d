"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.database_mode import DatabaseMode, resolve_database_mode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database selection: 1=development, 2=production, 3=test
    database_mode: str = Field(default="1", validation_alias="DATABASE_MODE")
    # Runtime environment flag; "test" always forces the test database
    app_env: str = Field(default="", validation_alias="APP_ENV")

    database_url_dev: str = Field(default="", validation_alias="DATABASE_URL_DEV")
    database_url_prod: str = Field(default="", validation_alias="DATABASE_URL_PROD")
    database_url_test: str = Field(default="", validation_alias="DATABASE_URL_TEST")

    # Identifier that only appears in production connection strings (e.g. a Neon
    # branch endpoint). Used to refuse test runs against production.
    production_branch: str = Field(default="", validation_alias="DATABASE_PRODUCTION_BRANCH")

    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Clerk
    clerk_issuer: str = Field(default="", validation_alias="CLERK_ISSUER")
    clerk_authorized_parties_str: str = Field(
        default="",
        validation_alias="CLERK_AUTHORIZED_PARTIES",
    )
    clerk_webhook_secret: str = Field(default="", validation_alias="CLERK_WEBHOOK_SECRET")

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # Maintenance mode - every route except /health answers 503
    maintenance_mode: bool = Field(default=False, validation_alias="MAINTENANCE_MODE")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Field length limits
    max_title_length: int = Field(default=500, validation_alias="MAX_TITLE_LENGTH")
    max_text_length: int = Field(default=20_000, validation_alias="MAX_TEXT_LENGTH")

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled against the production database.

        DEV_MODE completely bypasses authentication, so it must only ever be
        combined with a development or test database.
        """
        if not self.dev_mode:
            return self

        if self.resolved_mode == DatabaseMode.PRODUCTION:
            raise ValueError(
                "DEV_MODE cannot be enabled in production database mode. "
                "DEV_MODE bypasses all authentication and must only be used locally.",
            )
        return self

    @property
    def resolved_mode(self) -> DatabaseMode:
        """Database mode after applying the APP_ENV=test override."""
        return resolve_database_mode(self.database_mode, self.app_env, warn=False)

    @property
    def is_production_runtime(self) -> bool:
        """True when the process runs with APP_ENV=production."""
        return self.app_env.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        return _split_csv_setting(self.cors_origins_str)

    @property
    def clerk_authorized_parties(self) -> list[str]:
        """Origins allowed in the `azp` claim of Clerk session tokens."""
        return _split_csv_setting(self.clerk_authorized_parties_str)

    @property
    def clerk_jwks_url(self) -> str:
        """Get the Clerk JWKS URL for fetching public keys."""
        return f"{self.clerk_issuer.rstrip('/')}/.well-known/jwks.json"


def _split_csv_setting(value: str) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
