"""Resource and result models for listing and bulk deletion."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Token:
    """An M2M bearer token with its local expiry (epoch seconds)."""

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        """Return True while the token may still be sent."""
        return now < self.expires_at


@dataclass(frozen=True)
class PageRequest:
    """Position and size of one listing request."""

    cursor: str | None = None
    page_size: int = 50


@dataclass(frozen=True)
class User:
    """A Kinde user, either global or an organization member."""

    id: str
    email: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def label(self) -> str:
        """Human readable label used in progress logs."""
        return f"{self.email} ({self.id})" if self.email else self.id

    @classmethod
    def from_api_data(cls, data: dict[str, Any]) -> "User":
        """Create a User from an API response item.

        Args:
            data: One entry of ``users`` or ``organization_users``

        Returns:
            User: Parsed user
        """
        return cls(id=data.get("id") or "", email=data.get("email"), raw=data)


@dataclass(frozen=True)
class Identity:
    """A login identity attached to a user."""

    id: str
    type: str | None = None
    email: str | None = None
    name: str | None = None
    is_primary: bool = False
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def label(self) -> str:
        return self.id

    @classmethod
    def from_api_data(cls, data: dict[str, Any]) -> "Identity":
        """Create an Identity from an entry of the ``identities`` array."""
        return cls(
            id=data.get("id") or "",
            type=data.get("type"),
            email=data.get("email"),
            name=data.get("name"),
            is_primary=bool(data.get("is_primary", False)),
            raw=data,
        )


@dataclass
class Page:
    """One fetched page of a listing.

    Attributes:
        items: Parsed items of the page, in API order
        next_token: Opaque continuation token (next-token listings)
        has_more: Server-side flag for cursor listings
    """

    items: list[Any] = field(default_factory=list)
    next_token: str | None = None
    has_more: bool = False


@dataclass
class BulkResult:
    """Counts from one bulk deletion.

    ``processed`` always equals ``deleted + failed``.
    """

    processed: int = 0
    deleted: int = 0
    failed: int = 0

    @property
    def exit_code(self) -> int:
        """Process exit code for a run that ended with this result."""
        return 1 if self.failed else 0

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "deleted": self.deleted,
            "failed": self.failed,
        }


@dataclass
class OrgDeletionTotals:
    """Running totals of the organization identity flow."""

    users_processed: int = 0
    identities_processed: int = 0
    identities_deleted: int = 0
    identities_failed: int = 0

    def add(self, result: BulkResult) -> None:
        """Fold one user's identity deletion result into the totals.

        Args:
            result: Bulk result for a single user
        """
        self.users_processed += 1
        self.identities_processed += result.processed
        self.identities_deleted += result.deleted
        self.identities_failed += result.failed

    @property
    def exit_code(self) -> int:
        return 1 if self.identities_failed else 0

    def to_dict(self) -> dict[str, int]:
        return {
            "users_processed": self.users_processed,
            "identities_processed": self.identities_processed,
            "identities_deleted": self.identities_deleted,
            "identities_failed": self.identities_failed,
        }
