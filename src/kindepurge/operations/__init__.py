"""Listing and deletion operations."""

from .bulk_ops import dedupe_by_id, delete_all
from .identity_ops import (
    collect_organization_users,
    collect_user_identities,
    delete_identity,
    delete_org_identities,
    delete_user_identities,
)
from .pagination import CursorPaginator, NextTokenPaginator, PaginationState
from .preview_ops import PreviewResult, preview_org_identities, preview_users
from .user_ops import collect_all_users, delete_all_users, delete_user

__all__ = [
    "NextTokenPaginator",
    "CursorPaginator",
    "PaginationState",
    "delete_all",
    "dedupe_by_id",
    "collect_all_users",
    "delete_user",
    "delete_all_users",
    "collect_organization_users",
    "collect_user_identities",
    "delete_identity",
    "delete_user_identities",
    "delete_org_identities",
    "PreviewResult",
    "preview_users",
    "preview_org_identities",
]
