import json
from unittest.mock import MagicMock, patch
from urllib.parse import urlsplit

import pytest
from requests.structures import CaseInsensitiveDict

from kindepurge.core.auth import TokenManager
from kindepurge.models.config import KindeConfig
from kindepurge.utils.request_utils import RequestExecutor

HOST = "https://acme.kinde.com"


def make_response(status_code=200, body=None, headers=None, text=None):
    """Create a mock response object for requests."""
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = json.dumps(body) if body is not None else ""
    response.text = text
    response.headers = CaseInsensitiveDict(headers or {})
    return response


def token_response(access_token="test_token", expires_in=86400):
    return make_response(
        200,
        {"access_token": access_token, "expires_in": expires_in, "token_type": "bearer"},
    )


class FakeKindeAPI:
    """In-memory stand-in for a ``requests.Session`` talking to Kinde.

    Responses are queued per ``(method, path)``. The last queued response
    for a route is repeated once the queue is down to one entry, so a
    single 500 stands for "fails on every retry".
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.token_calls = 0
        self.token_responses = []
        self.session = MagicMock()
        self.session.post.side_effect = self._token
        self.session.request.side_effect = self._request

    def add(self, method, path, *responses):
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def add_json(self, method, path, *bodies):
        return self.add(method, path, *(make_response(200, body) for body in bodies))

    @property
    def network_calls(self):
        return self.token_calls + len(self.calls)

    def calls_to(self, method, path=None):
        return [
            call
            for call in self.calls
            if call["method"] == method and (path is None or call["path"] == path)
        ]

    def _token(self, url, data=None, headers=None, timeout=None):
        self.token_calls += 1
        if self.token_responses:
            return self.token_responses.pop(0)
        return token_response(f"token-{self.token_calls}")

    def _request(self, method, url, headers=None, timeout=None, params=None, **kwargs):
        path = urlsplit(url).path
        self.calls.append(
            {
                "method": method,
                "path": path,
                "params": dict(params or {}),
                "headers": dict(headers or {}),
            }
        )
        queue = self.routes.get((method, path))
        if not queue:
            return make_response(404, {"code": "NOT_FOUND", "message": "No route"})
        return queue.pop(0) if len(queue) > 1 else queue[0]


@pytest.fixture(autouse=True)
def no_sleep():
    """Backoff waits return immediately in tests."""
    with patch("kindepurge.utils.request_utils.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def config():
    """Confirmed configuration with an organization code."""
    return KindeConfig(
        host=HOST,
        client_id="client_123456789",
        client_secret="secret",
        page_size=2,
        max_retries=3,
        base_delay_ms=500,
        org_code="org_abc",
        confirm_delete_all=True,
    )


@pytest.fixture
def fake_api():
    return FakeKindeAPI()


@pytest.fixture
def executor(config, fake_api):
    token_manager = TokenManager(config, session=fake_api.session)
    return RequestExecutor(
        token_manager,
        max_retries=config.max_retries,
        base_delay_ms=config.base_delay_ms,
        session=fake_api.session,
    )


@pytest.fixture
def env_vars():
    return {
        "KINDE_HOST": HOST,
        "KINDE_CLIENT_ID": "client_123456789",
        "KINDE_CLIENT_SECRET": "secret",
    }
