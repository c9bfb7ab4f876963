"""Core functionality for kindepurge."""

from kindepurge.core.auth import TokenManager, doctor
from kindepurge.core.config import (
    check_env_file,
    get_env_config,
    require_confirmation,
    require_org_code,
    validate_env_var,
)
from kindepurge.core.exceptions import (
    APIError,
    AuthError,
    ConfigError,
    DeleteError,
    KindePurgeError,
    PageFetchError,
)

__all__ = [
    "TokenManager",
    "doctor",
    "get_env_config",
    "check_env_file",
    "validate_env_var",
    "require_confirmation",
    "require_org_code",
    "KindePurgeError",
    "ConfigError",
    "AuthError",
    "APIError",
    "PageFetchError",
    "DeleteError",
]
