"""Tests for the retrying request executor and backoff helpers."""

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from kindepurge.core.exceptions import AuthError
from kindepurge.utils.request_utils import (
    JITTER_MS,
    MAX_BACKOFF_MS,
    build_executor,
    compute_backoff_ms,
    is_retryable_status,
    parse_retry_after_ms,
)

from conftest import make_response

USERS_PATH = "/api/v1/users"
USERS_URL = "https://acme.kinde.com/api/v1/users"


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after_ms("2") == 2000
        assert parse_retry_after_ms(" 0.5 ") == 500

    def test_http_date(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        assert parse_retry_after_ms("Mon, 01 Jan 2024 12:00:03 GMT", now=now) == 3000

    def test_http_date_in_the_past(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        assert parse_retry_after_ms("Mon, 01 Jan 2024 11:00:00 GMT", now=now) == 0

    @pytest.mark.parametrize("value", [None, "", "soon", "-3"])
    def test_unusable_values(self, value):
        assert parse_retry_after_ms(value) is None


class TestComputeBackoff:
    def test_exponential(self):
        assert compute_backoff_ms(0, 500) == 500
        assert compute_backoff_ms(1, 500) == 1000
        assert compute_backoff_ms(3, 500) == 4000

    def test_capped(self):
        assert compute_backoff_ms(10, 500) == MAX_BACKOFF_MS

    def test_retry_after_raises_the_floor(self):
        assert compute_backoff_ms(0, 500, retry_after_ms=3000) == 3000
        assert compute_backoff_ms(2, 500, retry_after_ms=100) == 2000

    def test_retry_after_is_capped(self):
        assert compute_backoff_ms(0, 500, retry_after_ms=60000) == MAX_BACKOFF_MS


@pytest.mark.parametrize(
    "status,expected",
    [(429, True), (500, True), (503, True), (400, False), (401, False), (404, False)],
)
def test_is_retryable_status(status, expected):
    assert is_retryable_status(status) is expected


class TestRequestExecutor:
    def test_success_sends_bearer_token(self, executor, fake_api):
        fake_api.add_json("GET", USERS_PATH, {"users": []})

        response = executor.execute("GET", USERS_URL, params={"page_size": 2})

        assert response.status_code == 200
        assert len(fake_api.calls) == 1
        call = fake_api.calls[0]
        assert call["headers"]["Authorization"] == "Bearer token-1"
        assert call["headers"]["Accept"] == "application/json"
        assert call["params"] == {"page_size": 2}

    def test_token_is_reused_across_requests(self, executor, fake_api):
        fake_api.add_json("GET", USERS_PATH, {"users": []})

        executor.execute("GET", USERS_URL)
        executor.execute("GET", USERS_URL)

        assert fake_api.token_calls == 1

    def test_429_then_success_waits_with_jitter(self, executor, fake_api, no_sleep):
        fake_api.add(
            "GET", USERS_PATH, make_response(429), make_response(200, {"users": []})
        )

        with patch("kindepurge.utils.request_utils.random.random", return_value=0.5):
            response = executor.execute("GET", USERS_URL)

        assert response.status_code == 200
        assert len(fake_api.calls) == 2
        no_sleep.assert_called_once()
        waited_ms = no_sleep.call_args[0][0] * 1000
        assert waited_ms == pytest.approx(500 + 0.5 * JITTER_MS)

    def test_wait_is_within_jitter_window(self, executor, fake_api, no_sleep):
        fake_api.add("GET", USERS_PATH, make_response(503), make_response(200, {}))

        executor.execute("GET", USERS_URL)

        waited_ms = no_sleep.call_args[0][0] * 1000
        assert 500 <= waited_ms < 500 + JITTER_MS

    def test_retry_after_header_honored(self, executor, fake_api, no_sleep):
        fake_api.add(
            "GET",
            USERS_PATH,
            make_response(429, headers={"Retry-After": "4"}),
            make_response(200, {}),
        )

        with patch("kindepurge.utils.request_utils.random.random", return_value=0.0):
            executor.execute("GET", USERS_URL)

        assert no_sleep.call_args[0][0] == pytest.approx(4.0)

    def test_backoff_doubles_per_attempt(self, executor, fake_api, no_sleep):
        fake_api.add(
            "GET",
            USERS_PATH,
            make_response(500),
            make_response(500),
            make_response(500),
            make_response(200, {}),
        )

        with patch("kindepurge.utils.request_utils.random.random", return_value=0.0):
            executor.execute("GET", USERS_URL)

        waits = [call[0][0] for call in no_sleep.call_args_list]
        assert waits == pytest.approx([0.5, 1.0, 2.0])

    def test_retries_exhausted_returns_last_response(self, executor, fake_api, no_sleep):
        fake_api.add("GET", USERS_PATH, make_response(500, text="boom"))

        response = executor.execute("GET", USERS_URL)

        assert response.status_code == 500
        assert len(fake_api.calls) == 1 + executor.max_retries
        assert no_sleep.call_count == executor.max_retries

    def test_zero_retries(self, executor, fake_api, no_sleep):
        executor.max_retries = 0
        fake_api.add("GET", USERS_PATH, make_response(429))

        response = executor.execute("GET", USERS_URL)

        assert response.status_code == 429
        assert len(fake_api.calls) == 1
        no_sleep.assert_not_called()

    def test_client_error_not_retried(self, executor, fake_api, no_sleep):
        fake_api.add("GET", USERS_PATH, make_response(404))

        assert executor.execute("GET", USERS_URL).status_code == 404
        assert len(fake_api.calls) == 1
        no_sleep.assert_not_called()

    def test_401_refreshes_token_once(self, executor, fake_api, no_sleep):
        fake_api.add("GET", USERS_PATH, make_response(401), make_response(200, {}))

        response = executor.execute("GET", USERS_URL)

        assert response.status_code == 200
        assert fake_api.token_calls == 2
        assert fake_api.calls[0]["headers"]["Authorization"] == "Bearer token-1"
        assert fake_api.calls[1]["headers"]["Authorization"] == "Bearer token-2"
        no_sleep.assert_not_called()

    def test_second_401_is_returned(self, executor, fake_api):
        fake_api.add("GET", USERS_PATH, make_response(401))

        response = executor.execute("GET", USERS_URL)

        assert response.status_code == 401
        assert len(fake_api.calls) == 2
        assert fake_api.token_calls == 2

    def test_401_refresh_does_not_use_retry_budget(self, executor, fake_api):
        executor.max_retries = 1
        fake_api.add(
            "GET",
            USERS_PATH,
            make_response(401),
            make_response(429),
            make_response(200, {}),
        )

        response = executor.execute("GET", USERS_URL)

        assert response.status_code == 200
        assert len(fake_api.calls) == 3

    def test_refresh_failure_raises_auth_error(self, executor, fake_api):
        fake_api.add("GET", USERS_PATH, make_response(401))
        fake_api.token_responses.extend(
            [make_response(200, {"access_token": "a"}), make_response(500)]
        )

        with pytest.raises(AuthError):
            executor.execute("GET", USERS_URL)
        assert len(fake_api.calls) == 1

    def test_transport_error_propagates(self, executor, fake_api):
        fake_api.session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(requests.exceptions.Timeout):
            executor.execute("GET", USERS_URL)


def test_build_executor_shares_session(config):
    session = MagicMock()

    executor = build_executor(config, session=session)

    assert executor.session is session
    assert executor.token_manager.session is session
    assert executor.max_retries == config.max_retries
    assert executor.base_delay_ms == config.base_delay_ms
