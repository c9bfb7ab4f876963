"""Response body helpers: success checks, JSON parsing and error extraction.

The Management API reports failures in one of two JSON shapes, either an
``errors`` array of ``{code, message}`` objects or a top-level ``code`` /
``message`` pair. Anything else is surfaced as raw text.
"""

import json
from dataclasses import dataclass
from typing import Any

import requests

NO_BODY = "No response body"


@dataclass(frozen=True)
class StructuredErrors:
    """Body with a non-empty ``errors`` array."""

    errors: tuple[tuple[str | None, str | None], ...]

    def describe(self) -> str:
        return "; ".join(_join_code_message(code, msg) for code, msg in self.errors)


@dataclass(frozen=True)
class CodeMessage:
    """Body with a top-level ``code`` and/or ``message``."""

    code: str | None
    message: str | None

    def describe(self) -> str:
        return _join_code_message(self.code, self.message)


@dataclass(frozen=True)
class RawText:
    """Body that is not JSON or carries no recognizable error fields."""

    text: str

    def describe(self) -> str:
        return self.text or NO_BODY


ErrorBody = StructuredErrors | CodeMessage | RawText


def _join_code_message(code: Any, message: Any) -> str:
    return ": ".join(str(part) for part in (code, message) if part)


def try_parse_json(text: str) -> Any | None:
    """Parse JSON text, returning None when it is not valid JSON."""
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return None


def classify_error_body(text: str) -> ErrorBody:
    """Classify an error response body.

    Args:
        text: Raw response body

    Returns:
        ErrorBody: ``StructuredErrors`` when an ``errors`` array is present,
        ``CodeMessage`` for a top-level code/message pair, else ``RawText``
    """
    parsed = try_parse_json(text) if text else None
    if not isinstance(parsed, dict):
        return RawText(text or "")

    errors = parsed.get("errors")
    if isinstance(errors, list) and errors:
        return StructuredErrors(
            tuple(
                (item.get("code"), item.get("message"))
                if isinstance(item, dict)
                else (None, str(item))
                for item in errors
            )
        )

    if parsed.get("code") or parsed.get("message"):
        return CodeMessage(parsed.get("code"), parsed.get("message"))

    return RawText(text)


def describe_error_body(text: str) -> str:
    """Render the best available error description for a response body."""
    return classify_error_body(text).describe()


def is_success(response: requests.Response) -> bool:
    """True for 2xx responses only."""
    return 200 <= response.status_code < 300
