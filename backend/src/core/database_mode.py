"""
Database mode resolution.

Binds the running process to exactly one logical database (development,
production or test) and its connection string. Resolution happens once at
startup; every failure here is fatal and aborts boot.
"""
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger(__name__)


class DatabaseMode(StrEnum):
    """Logical database a process talks to."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


# DATABASE_MODE selector values. Mode names are accepted as well.
MODE_SELECTORS: dict[str, DatabaseMode] = {
    "1": DatabaseMode.DEVELOPMENT,
    "2": DatabaseMode.PRODUCTION,
    "3": DatabaseMode.TEST,
}

URL_ENV_VARS: dict[DatabaseMode, str] = {
    DatabaseMode.DEVELOPMENT: "DATABASE_URL_DEV",
    DatabaseMode.PRODUCTION: "DATABASE_URL_PROD",
    DatabaseMode.TEST: "DATABASE_URL_TEST",
}


class DatabaseConfigError(Exception):
    """Raised when the database configuration is missing or unsafe."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class DatabaseConfig:
    """Resolved database mode and its connection string."""

    mode: DatabaseMode
    url: str


def resolve_database_mode(
    selector: str | None,
    app_env: str | None,
    warn: bool = True,
) -> DatabaseMode:
    """
    Map the DATABASE_MODE selector and APP_ENV flag to a database mode.

    APP_ENV=test forces test mode regardless of the selector. Otherwise the
    selector is looked up in MODE_SELECTORS (or matched against a mode name);
    an unknown or missing selector falls back to development.

    Args:
        selector: DATABASE_MODE value ("1", "2", "3" or a mode name).
        app_env: Runtime environment flag.
        warn: Log a warning when falling back to development.
    """
    if (app_env or "").strip().lower() == DatabaseMode.TEST:
        return DatabaseMode.TEST

    key = (selector or "").strip().lower()
    if key in MODE_SELECTORS:
        return MODE_SELECTORS[key]
    if key in {mode.value for mode in DatabaseMode}:
        return DatabaseMode(key)

    if warn:
        logger.warning("Unknown DATABASE_MODE %r, defaulting to development", selector)
    return DatabaseMode.DEVELOPMENT


def _url_for_mode(settings: "Settings", mode: DatabaseMode) -> str:
    urls = {
        DatabaseMode.DEVELOPMENT: settings.database_url_dev,
        DatabaseMode.PRODUCTION: settings.database_url_prod,
        DatabaseMode.TEST: settings.database_url_test,
    }
    return urls[mode].strip()


def resolve_database_config(settings: "Settings") -> DatabaseConfig:
    """
    Resolve the database mode and connection string for this process.

    Raises:
        DatabaseConfigError: If the URL for the resolved mode is not set, or if
            test mode would point at the production database.
    """
    mode = resolve_database_mode(settings.database_mode, settings.app_env)
    if not settings.is_production_runtime:
        logger.info(
            "Database mode: %s (DATABASE_MODE=%s, APP_ENV=%s)",
            mode, settings.database_mode, settings.app_env or "unset",
        )

    url = _url_for_mode(settings, mode)
    if not url:
        env_var = URL_ENV_VARS[mode]
        message = (
            f"Database URL not configured for {mode} mode "
            f"(DATABASE_MODE={settings.database_mode}). Set {env_var} in your environment."
        )
        logger.error(message)
        raise DatabaseConfigError(message)

    if mode == DatabaseMode.TEST:
        _check_test_isolation(settings, url)
    elif mode == DatabaseMode.PRODUCTION:
        if settings.production_branch and settings.production_branch not in url:
            logger.warning(
                "Production mode is not using the expected production branch %s",
                settings.production_branch,
            )

    return DatabaseConfig(mode=mode, url=url)


def _check_test_isolation(settings: "Settings", url: str) -> None:
    production_url = settings.database_url_prod.strip()
    if not settings.production_branch:
        logger.warning(
            "DATABASE_PRODUCTION_BRANCH is not set; test mode can only check that "
            "DATABASE_URL_TEST differs from DATABASE_URL_PROD",
        )
    if settings.production_branch and settings.production_branch in url:
        raise DatabaseConfigError(
            "SAFETY VIOLATION: test mode attempted to use the production database "
            f"(connection string references {settings.production_branch!r})",
        )
    if production_url and url == production_url:
        raise DatabaseConfigError(
            "SAFETY VIOLATION: DATABASE_URL_TEST is identical to DATABASE_URL_PROD",
        )


def is_production_mode(settings: "Settings") -> bool:
    """Check if the settings resolve to the production database."""
    return settings.resolved_mode == DatabaseMode.PRODUCTION


def is_test_mode(settings: "Settings") -> bool:
    """Check if the settings resolve to the test database."""
    return settings.resolved_mode == DatabaseMode.TEST
