"""kindepurge - bulk deletion tool for the Kinde Management API."""

from .core.auth import TokenManager, doctor
from .core.config import get_env_config, require_confirmation
from .core.exceptions import (
    APIError,
    AuthError,
    ConfigError,
    DeleteError,
    KindePurgeError,
    PageFetchError,
)
from .models import (
    BulkResult,
    Identity,
    KindeConfig,
    OrgDeletionTotals,
    Page,
    PageRequest,
    Token,
    User,
)
from .operations import (
    CursorPaginator,
    NextTokenPaginator,
    delete_all,
    delete_all_users,
    delete_org_identities,
    preview_org_identities,
    preview_users,
)
from .utils.request_utils import RequestExecutor, build_executor

__version__ = "1.0.0"

__all__ = [
    # Core
    "TokenManager",
    "RequestExecutor",
    "build_executor",
    "doctor",
    "get_env_config",
    "require_confirmation",
    # Exceptions
    "KindePurgeError",
    "ConfigError",
    "AuthError",
    "APIError",
    "PageFetchError",
    "DeleteError",
    # Models
    "KindeConfig",
    "Token",
    "PageRequest",
    "Page",
    "User",
    "Identity",
    "BulkResult",
    "OrgDeletionTotals",
    # Operations
    "NextTokenPaginator",
    "CursorPaginator",
    "delete_all",
    "delete_all_users",
    "delete_org_identities",
    "preview_users",
    "preview_org_identities",
]
