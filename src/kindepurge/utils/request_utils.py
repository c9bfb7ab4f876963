"""Request execution with bearer auth, 401 refresh and backoff retries."""

import random
import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import requests

from ..core.auth import TokenManager
from ..core.config import API_TIMEOUT
from ..models.config import KindeConfig
from .logging_utils import get_logger

# Backoff never waits longer than this before jitter is added
MAX_BACKOFF_MS = 15000

# Random jitter added to every wait, in [0, JITTER_MS)
JITTER_MS = 250

USER_AGENT = "kindepurge/1.0 (Kinde bulk deletion tool)"

logger = get_logger(__name__)


def is_retryable_status(status_code: int) -> bool:
    """Rate limits and server errors are retried with backoff."""
    return status_code == 429 or status_code >= 500


def parse_retry_after_ms(value: str | None, now: datetime | None = None) -> float | None:
    """Interpret a ``Retry-After`` header as a wait in milliseconds.

    Args:
        value: Header value, either delay-seconds or an HTTP date
        now: Reference time for HTTP dates (defaults to current UTC time)

    Returns:
        Optional[float]: Milliseconds to wait, or None if absent/unparseable
    """
    if value is None or not value.strip():
        return None
    value = value.strip()

    try:
        seconds = float(value)
    except ValueError:
        seconds = None
    if seconds is not None:
        return seconds * 1000 if seconds >= 0 else None

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)

    now = now or datetime.now(UTC)
    return max(0.0, (retry_at - now).total_seconds() * 1000)


def compute_backoff_ms(
    attempt: int, base_delay_ms: int, retry_after_ms: float | None = None
) -> float:
    """Wait before retry ``attempt + 1``, without jitter.

    The exponential delay ``base_delay_ms * 2**attempt`` is raised to the
    server's ``Retry-After`` hint when that is longer, then capped.
    """
    backoff = base_delay_ms * 2**attempt
    return min(max(retry_after_ms or 0, backoff), MAX_BACKOFF_MS)


class RequestExecutor:
    """Runs single logical API requests with auth and retry policy.

    Per attempt: attach the current bearer token, send, then
    - on the first 401 of the call, force a token refresh and resend
      without consuming the retry budget;
    - on 429/5xx while ``attempt < max_retries``, sleep with backoff and
      jitter and resend;
    - otherwise return the response as-is, success or not.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        max_retries: int = 6,
        base_delay_ms: int = 500,
        session: requests.Session | None = None,
        timeout: float = API_TIMEOUT,
    ) -> None:
        """Initialize the executor.

        Args:
            token_manager: Source of bearer tokens for every request
            max_retries: Retries allowed for 429/5xx per logical request
            base_delay_ms: First backoff delay in milliseconds
            session: HTTP session, shared with the token manager by default
            timeout: Request timeout in seconds
        """
        self.token_manager = token_manager
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.session = session or token_manager.session
        self.timeout = timeout

    def execute(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send one logical request and return its final response.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Extra request headers
            **kwargs: Passed through to ``requests.Session.request``

        Returns:
            requests.Response: The last response received. Callers classify
            non-success statuses themselves.

        Raises:
            AuthError: If a token cannot be obtained
            requests.exceptions.RequestException: On transport failure
        """
        attempt = 0
        refreshed_after_401 = False

        while True:
            token = self.token_manager.get_token()
            request_headers = {
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
                **(headers or {}),
                "Authorization": f"Bearer {token.value}",
            }

            response = self.session.request(
                method, url, headers=request_headers, timeout=self.timeout, **kwargs
            )

            if response.status_code == 401 and not refreshed_after_401:
                logger.warning(
                    "401 Unauthorized. Refreshing token and retrying once...",
                    extra={"api_endpoint": url, "status_code": 401},
                )
                self.token_manager.get_token(force_refresh=True)
                refreshed_after_401 = True
                continue

            if is_retryable_status(response.status_code) and attempt < self.max_retries:
                wait_ms = self.wait_ms(attempt, response)
                logger.warning(
                    f"Request throttled/failed ({response.status_code}). "
                    f"Retrying in {wait_ms:.0f}ms "
                    f"(attempt {attempt + 1}/{self.max_retries})",
                    extra={
                        "api_endpoint": url,
                        "status_code": response.status_code,
                        "attempt": attempt + 1,
                    },
                )
                time.sleep(wait_ms / 1000)
                attempt += 1
                continue

            return response

    def wait_ms(self, attempt: int, response: requests.Response) -> float:
        """Backoff for ``attempt`` plus jitter, honoring ``Retry-After``."""
        retry_after_ms = parse_retry_after_ms(response.headers.get("Retry-After"))
        backoff = compute_backoff_ms(attempt, self.base_delay_ms, retry_after_ms)
        return backoff + random.random() * JITTER_MS


def build_executor(
    config: KindeConfig, session: requests.Session | None = None
) -> RequestExecutor:
    """Create the token manager and executor for one run.

    Args:
        config: Run configuration
        session: Optional shared HTTP session

    Returns:
        RequestExecutor: Executor owning a fresh token cache
    """
    session = session or requests.Session()
    token_manager = TokenManager(config, session=session)
    return RequestExecutor(
        token_manager,
        max_retries=config.max_retries,
        base_delay_ms=config.base_delay_ms,
        session=session,
    )
