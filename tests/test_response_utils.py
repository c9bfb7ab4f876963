"""Tests for error body classification."""

import pytest

from kindepurge.utils.response_utils import (
    NO_BODY,
    CodeMessage,
    RawText,
    StructuredErrors,
    classify_error_body,
    describe_error_body,
    is_success,
    try_parse_json,
)

from conftest import make_response


class TestClassifyErrorBody:
    def test_errors_array(self):
        body = '{"errors": [{"code": "USER_INVALID", "message": "Bad id"}, {"code": "X"}]}'
        parsed = classify_error_body(body)

        assert isinstance(parsed, StructuredErrors)
        assert parsed.describe() == "USER_INVALID: Bad id; X"

    def test_code_message(self):
        parsed = classify_error_body('{"code": "RATE_LIMITED", "message": "Slow down"}')

        assert parsed == CodeMessage("RATE_LIMITED", "Slow down")
        assert parsed.describe() == "RATE_LIMITED: Slow down"

    def test_message_only(self):
        assert describe_error_body('{"message": "Forbidden"}') == "Forbidden"

    def test_empty_errors_array_falls_back_to_code(self):
        parsed = classify_error_body('{"errors": [], "code": "E1"}')
        assert parsed == CodeMessage("E1", None)

    def test_non_json_text(self):
        parsed = classify_error_body("<html>Bad Gateway</html>")

        assert parsed == RawText("<html>Bad Gateway</html>")
        assert parsed.describe() == "<html>Bad Gateway</html>"

    def test_json_without_error_fields(self):
        assert describe_error_body('{"foo": 1}') == '{"foo": 1}'

    def test_json_array_is_raw(self):
        assert isinstance(classify_error_body("[1, 2]"), RawText)

    def test_empty_body(self):
        assert describe_error_body("") == NO_BODY


def test_try_parse_json():
    assert try_parse_json('{"a": 1}') == {"a": 1}
    assert try_parse_json("not json") is None


@pytest.mark.parametrize(
    "status,expected", [(200, True), (204, True), (299, True), (301, False), (404, False)]
)
def test_is_success(status, expected):
    assert is_success(make_response(status)) is expected
