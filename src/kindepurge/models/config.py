"""Configuration data model for Kinde Management API access."""

from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_RETRIES = 6
DEFAULT_BASE_DELAY_MS = 500


@dataclass(frozen=True)
class KindeConfig:
    """Settings for one deletion run.

    Attributes:
        host: Kinde business domain, e.g. https://acme.kinde.com
        client_id: M2M application client id
        client_secret: M2M application client secret
        audience: Token audience, defaults to ``{host}/api``
        page_size: Items requested per listing page
        max_retries: Retries allowed for 429/5xx responses per request
        base_delay_ms: First backoff delay; doubles on every retry
        org_code: Organization whose users' identities are deleted
        confirm_delete_all: Explicit opt-in for destructive runs
    """

    host: str
    client_id: str
    client_secret: str
    audience: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    org_code: str | None = None
    confirm_delete_all: bool = False

    def __post_init__(self) -> None:
        """Normalize the host and derive the audience if not provided."""
        object.__setattr__(self, "host", self.host.rstrip("/"))
        if not self.audience:
            object.__setattr__(self, "audience", f"{self.host}/api")

    @property
    def token_url(self) -> str:
        """OAuth2 token endpoint for the client-credentials exchange."""
        return f"{self.host}/oauth2/token"

    def api_url(self, endpoint: str = "") -> str:
        """Get the Management API URL for this configuration.

        Args:
            endpoint: API endpoint to append (optional)

        Returns:
            str: Management API URL
        """
        base_api_url = f"{self.host}/api/v1"
        if endpoint:
            endpoint = endpoint.lstrip("/")
            return f"{base_api_url}/{endpoint}"
        return base_api_url

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary format with the secret redacted."""
        return {
            "host": self.host,
            "client_id": self.client_id,
            "client_secret": "***REDACTED***",
            "audience": self.audience,
            "page_size": self.page_size,
            "max_retries": self.max_retries,
            "base_delay_ms": self.base_delay_ms,
            "org_code": self.org_code,
            "confirm_delete_all": self.confirm_delete_all,
        }
