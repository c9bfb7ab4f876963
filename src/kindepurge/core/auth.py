"""M2M token acquisition and credential checks."""

import time
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import requests

from ..models.config import KindeConfig
from ..models.resources import Token
from ..utils.logging_utils import get_logger
from ..utils.response_utils import describe_error_body, is_success, try_parse_json
from .exceptions import AuthError, KindePurgeError

if TYPE_CHECKING:
    from ..utils.request_utils import RequestExecutor

# Token request timeout in seconds
TOKEN_REQUEST_TIMEOUT = 10

# Used when the token response omits expires_in
DEFAULT_EXPIRES_IN = 3600

# Tokens are considered expired this many seconds early
EXPIRY_SKEW_SECONDS = 60

logger = get_logger(__name__)


class TokenManager:
    """Owns the cached M2M bearer token for one run.

    A single instance is created per run and handed to the request
    executor; every outbound call reads the token through it.
    """

    def __init__(
        self,
        config: KindeConfig,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        timeout: float = TOKEN_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the token manager.

        Args:
            config: Run configuration with host and client credentials
            session: HTTP session used for the token exchange
            clock: Returns the current time in epoch seconds
            timeout: Token request timeout in seconds
        """
        self.config = config
        self.session = session or requests.Session()
        self.clock = clock
        self.timeout = timeout
        self._token: Token | None = None

    @property
    def cached_token(self) -> Token | None:
        return self._token

    def get_token(self, force_refresh: bool = False) -> Token:
        """Return a usable token, exchanging credentials only when needed.

        Args:
            force_refresh: Ignore the cache, e.g. after a 401

        Returns:
            Token: Cached or freshly acquired token

        Raises:
            AuthError: If the credential exchange fails
        """
        if (
            not force_refresh
            and self._token is not None
            and self._token.is_valid(self.clock())
        ):
            return self._token

        self._token = self._request_token()
        return self._token

    def _request_token(self) -> Token:
        logger.info(
            "Requesting M2M access token...",
            extra={"operation": "token_request", "api_endpoint": self.config.token_url},
        )
        body = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "audience": self.config.audience,
        }

        try:
            response = self.session.post(
                self.config.token_url,
                data=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AuthError("Token request failed", details=str(e)) from e

        text = response.text or ""
        if not is_success(response):
            raise AuthError(
                f"Token request failed {response.status_code}",
                details=describe_error_body(text),
            )

        data = try_parse_json(text)
        if not isinstance(data, dict) or not data.get("access_token"):
            raise AuthError(
                "Token request succeeded but response did not include access_token."
            )

        expires_in = data.get("expires_in")
        if not isinstance(expires_in, (int, float)):
            expires_in = DEFAULT_EXPIRES_IN

        token = Token(
            value=str(data["access_token"]),
            expires_at=self.clock() + max(expires_in - EXPIRY_SKEW_SECONDS, 0),
        )
        logger.info(
            f"Got access token (expires in ~{expires_in}s).",
            extra={"operation": "token_request", "status": "success"},
        )
        return token


def doctor(
    config: KindeConfig,
    test_api: bool = False,
    executor: "RequestExecutor | None" = None,
) -> dict[str, Any]:
    """Check that the credentials work by acquiring a token.

    Args:
        config: Run configuration
        test_api: Also fetch a single users page with the token
        executor: Executor to use, built from ``config`` when omitted

    Returns:
        Dict[str, Any]: Status information including success status and details
    """
    from ..operations.user_ops import get_users_page
    from ..utils.request_utils import build_executor

    logger.info(
        f"🔍 Testing credentials against {config.host}...",
        extra={"operation": "doctor_check"},
    )
    logger.info(f"    ✅ Client ID: {config.client_id[:8]}...")
    logger.info(f"    ✅ Audience: {config.audience}")

    executor = executor or build_executor(config)
    try:
        executor.token_manager.get_token()
    except AuthError as e:
        logger.error(
            f"❌ Token request failed: {e}",
            extra={"operation": "doctor_check", "error_type": "AuthError"},
        )
        return {
            "success": False,
            "token_obtained": False,
            "api_tested": False,
            "error": str(e),
            "details": "Client credentials exchange failed",
        }

    logger.info("    ✅ Access token obtained successfully")
    result: dict[str, Any] = {
        "success": True,
        "token_obtained": True,
        "api_tested": False,
        "details": "Credentials are working correctly",
    }

    if test_api:
        logger.info("  🌐 Testing API access...")
        single_item = replace(config, page_size=1)
        try:
            get_users_page(executor, single_item)
            result["api_status"] = "success"
            result["details"] = "Credentials and API access are working correctly"
            logger.info("    ✅ API access successful")
        except KindePurgeError as e:
            logger.warning(f"    ⚠️  API access test failed: {e}")
            result["success"] = False
            result["api_status"] = "failed"
            result["details"] = f"Token obtained but API access failed: {e}"
        result["api_tested"] = True

    return result
