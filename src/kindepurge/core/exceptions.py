"""Exception hierarchy for kindepurge.

``ConfigError``, ``AuthError`` and ``PageFetchError`` abort a run.
``DeleteError`` only fails the item it was raised for.
"""


class KindePurgeError(Exception):
    """Root of every error raised by kindepurge.

    Rendered as ``message`` or ``message: details``.
    """

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"{self.message}: {self.details}" if self.details else self.message


class ConfigError(KindePurgeError):
    """Missing or invalid settings, or an unconfirmed destructive run.

    Always raised before the first network call.
    """


class AuthError(KindePurgeError):
    """The client-credentials exchange failed or returned no access token."""


class APIError(KindePurgeError):
    """A Management API call ended with an unusable response.

    Rendered as ``message | Status: ... | Endpoint: ... | Details: ...``,
    leaving out whatever context is unknown.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
        details: str | None = None,
    ):
        """Initialize the API error.

        Args:
            message: Summary such as ``GET /users failed 500``
            status_code: Final HTTP status, if a response was received
            endpoint: API path relative to ``/api/v1``
            details: Error text extracted from the response body
        """
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message, details)

    def _context(self) -> list[tuple[str, object]]:
        return [
            ("Status", self.status_code),
            ("Endpoint", self.endpoint),
            ("Details", self.details),
        ]

    def _format_message(self) -> str:
        segments = [self.message]
        segments.extend(f"{label}: {value}" for label, value in self._context() if value)
        return " | ".join(segments)


class PageFetchError(APIError):
    """A listing page could not be fetched or decoded.

    An incomplete listing cannot be reconciled, so the run stops.
    """


class DeleteError(APIError):
    """A single user or identity delete failed after retries."""

    def __init__(
        self,
        message: str,
        resource_id: str | None = None,
        status_code: int | None = None,
        endpoint: str | None = None,
        details: str | None = None,
    ):
        self.resource_id = resource_id
        super().__init__(message, status_code, endpoint, details)

    def _context(self) -> list[tuple[str, object]]:
        return [*super()._context(), ("Resource", self.resource_id)]
