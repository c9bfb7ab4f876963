"""Data models for kindepurge."""

from .config import KindeConfig
from .resources import (
    BulkResult,
    Identity,
    OrgDeletionTotals,
    Page,
    PageRequest,
    Token,
    User,
)

__all__ = [
    "KindeConfig",
    "Token",
    "PageRequest",
    "Page",
    "User",
    "Identity",
    "BulkResult",
    "OrgDeletionTotals",
]
