"""Tests for the global user deletion flow."""

from dataclasses import replace
from unittest.mock import patch

import pytest

from kindepurge.core.exceptions import ConfigError, DeleteError, PageFetchError
from kindepurge.operations.user_ops import (
    collect_all_users,
    delete_all_users,
    delete_user,
    get_users_page,
)

from conftest import make_response

USERS = "/api/v1/users"
USER = "/api/v1/user"


class TestGetUsersPage:
    def test_first_page_has_no_token(self, executor, fake_api, config):
        fake_api.add_json(
            "GET",
            USERS,
            {"users": [{"id": "kp_1", "email": "a@example.com"}], "next_token": "T1"},
        )

        page = get_users_page(executor, config)

        assert fake_api.calls[0]["params"] == {"page_size": 2}
        assert page.items[0].label == "a@example.com (kp_1)"
        assert page.next_token == "T1"

    def test_next_token_forwarded(self, executor, fake_api, config):
        fake_api.add_json("GET", USERS, {"users": None})

        page = get_users_page(executor, config, "T1")

        assert fake_api.calls[0]["params"] == {"page_size": 2, "next_token": "T1"}
        assert page.items == []
        assert page.next_token is None


def test_collect_all_users_follows_tokens(executor, fake_api, config):
    fake_api.add_json(
        "GET",
        USERS,
        {"users": [{"id": "kp_1"}, {"id": "kp_2"}], "next_token": "T1"},
        {"users": [{"id": "kp_3"}], "next_token": "T1"},
    )

    users = collect_all_users(executor, config)

    assert [u.id for u in users] == ["kp_1", "kp_2", "kp_3"]
    assert len(fake_api.calls_to("GET")) == 2


class TestDeleteUser:
    def test_success(self, executor, fake_api, config):
        fake_api.add("DELETE", USER, make_response(200, {"code": "OK"}))

        delete_user(executor, config, "kp_1")

        assert fake_api.calls[0]["params"] == {"id": "kp_1"}

    def test_failure_raises_delete_error(self, executor, fake_api, config):
        fake_api.add(
            "DELETE", USER, make_response(400, {"errors": [{"code": "USER_INVALID"}]})
        )

        with pytest.raises(DeleteError) as exc_info:
            delete_user(executor, config, "kp_1")

        assert exc_info.value.resource_id == "kp_1"
        assert exc_info.value.status_code == 400
        assert exc_info.value.details == "USER_INVALID"


class TestDeleteAllUsers:
    def test_deletes_every_user(self, executor, fake_api, config):
        fake_api.add_json(
            "GET",
            USERS,
            {"users": [{"id": "kp_1"}, {"id": "kp_2"}], "next_token": "T1"},
            {"users": [{"id": "kp_2"}, {"id": "kp_3"}]},
        )
        fake_api.add("DELETE", USER, make_response(200, {}))

        result = delete_all_users(config, executor=executor)

        deleted = [c["params"]["id"] for c in fake_api.calls_to("DELETE")]
        assert deleted == ["kp_1", "kp_2", "kp_3"]
        assert result.to_dict() == {"processed": 3, "deleted": 3, "failed": 0}
        assert result.exit_code == 0
        assert fake_api.token_calls == 1

    def test_partial_failure(self, executor, fake_api, config):
        fake_api.add_json("GET", USERS, {"users": [{"id": "kp_1"}, {"id": "kp_2"}]})
        fake_api.add(
            "DELETE", USER, make_response(404, {"message": "Not found"}), make_response(200, {})
        )

        result = delete_all_users(config, executor=executor)

        assert result.to_dict() == {"processed": 2, "deleted": 1, "failed": 1}
        assert result.exit_code == 1

    def test_no_users(self, executor, fake_api, config):
        fake_api.add_json("GET", USERS, {"users": []})

        result = delete_all_users(config, executor=executor)

        assert result.processed == 0
        assert fake_api.calls_to("DELETE") == []

    def test_listing_failure_is_fatal(self, executor, fake_api, config):
        fake_api.add("GET", USERS, make_response(403, {"message": "Forbidden"}))

        with pytest.raises(PageFetchError):
            delete_all_users(config, executor=executor)
        assert fake_api.calls_to("DELETE") == []

    @pytest.mark.parametrize("listed", [[None], "kp_1", {"id": "kp_1"}])
    def test_malformed_listing_is_fatal(self, executor, fake_api, config, listed):
        fake_api.add_json("GET", USERS, {"users": listed})

        with pytest.raises(PageFetchError, match="malformed 'users' list") as exc_info:
            delete_all_users(config, executor=executor)

        assert exc_info.value.status_code == 200
        assert exc_info.value.endpoint == "/users"
        assert fake_api.calls_to("DELETE") == []

    def test_refuses_without_confirmation(self, executor, fake_api, config):
        unconfirmed = replace(config, confirm_delete_all=False)

        with patch("kindepurge.operations.user_ops.build_executor") as mock_build:
            with pytest.raises(ConfigError, match="Refusing to run"):
                delete_all_users(unconfirmed)

        mock_build.assert_not_called()
        with pytest.raises(ConfigError):
            delete_all_users(unconfirmed, executor=executor)
        assert fake_api.network_calls == 0
