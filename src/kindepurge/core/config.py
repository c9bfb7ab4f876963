"""Configuration utilities for Kinde Management API access."""

import os
from collections.abc import Mapping

import dotenv

from ..models.config import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_SIZE,
    KindeConfig,
)
from .exceptions import ConfigError

# Request timeout in seconds
API_TIMEOUT = 30

CONFIRM_ENV_VAR = "KINDE_CONFIRM_DELETE_ALL"


def check_env_file() -> None:
    """Check if .env file exists and load it."""
    env_path = ".env"
    if os.path.exists(env_path):
        dotenv.load_dotenv(env_path)


def validate_env_var(name: str, value: str | None) -> str:
    """Validate that an environment variable is set and not empty.

    Args:
        name: Environment variable name
        value: Environment variable value

    Returns:
        str: The validated value, stripped of surrounding whitespace

    Raises:
        ConfigError: If the environment variable is missing or empty
    """
    if value is None or not value.strip():
        raise ConfigError(f"Missing env var: {name}")
    return value.strip()


def parse_positive_int(name: str, raw: str | None, fallback: int) -> int:
    """Parse an optional positive integer setting.

    Raises:
        ConfigError: If the value is set but is not an integer > 0
    """
    value = _parse_int(name, raw, fallback, "a positive integer")
    if value <= 0:
        raise ConfigError(f'Invalid {name}="{raw}". Expected a positive integer.')
    return value


def parse_non_negative_int(name: str, raw: str | None, fallback: int) -> int:
    """Parse an optional non-negative integer setting.

    Raises:
        ConfigError: If the value is set but is not an integer >= 0
    """
    value = _parse_int(name, raw, fallback, "a non-negative integer")
    if value < 0:
        raise ConfigError(
            f'Invalid {name}="{raw}". Expected a non-negative integer.'
        )
    return value


def _parse_int(name: str, raw: str | None, fallback: int, expected: str) -> int:
    if raw is None or not raw.strip():
        return fallback
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigError(f'Invalid {name}="{raw}". Expected {expected}.') from e


def parse_bool(raw: str | None) -> bool:
    return (raw or "").strip().lower() == "true"


def get_env_config(env_vars: Mapping[str, str] | None = None) -> KindeConfig:
    """Build the run configuration from environment variables.

    Loads ``.env`` from the working directory first when ``env_vars`` is not
    given.

    Args:
        env_vars: Explicit variables to read instead of ``os.environ``

    Returns:
        KindeConfig: Validated configuration

    Raises:
        ConfigError: If required variables are missing or values are invalid
    """
    if env_vars is None:
        check_env_file()
        env_vars = os.environ

    host = validate_env_var("KINDE_HOST", env_vars.get("KINDE_HOST"))
    client_id = validate_env_var("KINDE_CLIENT_ID", env_vars.get("KINDE_CLIENT_ID"))
    client_secret = validate_env_var(
        "KINDE_CLIENT_SECRET", env_vars.get("KINDE_CLIENT_SECRET")
    )

    if not host.startswith(("https://", "http://")):
        raise ConfigError(
            f"Invalid KINDE_HOST: {host}. "
            "Host should include the scheme, e.g. https://acme.kinde.com"
        )

    org_code = (env_vars.get("KINDE_ORG_CODE") or "").strip() or None

    return KindeConfig(
        host=host,
        client_id=client_id,
        client_secret=client_secret,
        audience=(env_vars.get("KINDE_AUDIENCE") or "").strip() or None,
        page_size=parse_positive_int(
            "KINDE_PAGE_SIZE", env_vars.get("KINDE_PAGE_SIZE"), DEFAULT_PAGE_SIZE
        ),
        max_retries=parse_non_negative_int(
            "KINDE_MAX_RETRIES", env_vars.get("KINDE_MAX_RETRIES"), DEFAULT_MAX_RETRIES
        ),
        base_delay_ms=parse_positive_int(
            "KINDE_BASE_DELAY_MS",
            env_vars.get("KINDE_BASE_DELAY_MS"),
            DEFAULT_BASE_DELAY_MS,
        ),
        org_code=org_code,
        confirm_delete_all=parse_bool(env_vars.get(CONFIRM_ENV_VAR)),
    )


def require_confirmation(config: KindeConfig) -> None:
    """Refuse to start a destructive run without explicit opt-in.

    Raises:
        ConfigError: If ``confirm_delete_all`` is not set
    """
    if not config.confirm_delete_all:
        raise ConfigError(
            f"Refusing to run. Set {CONFIRM_ENV_VAR}=true in your .env to confirm."
        )


def require_org_code(config: KindeConfig) -> str:
    """Return the organization code or fail if it is not configured.

    Raises:
        ConfigError: If no organization code is configured
    """
    if not config.org_code:
        raise ConfigError("Missing env var: KINDE_ORG_CODE")
    return config.org_code
