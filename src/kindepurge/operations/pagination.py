"""Listing pagination for next-token and starting-after cursor endpoints.

Both paginators keep every cursor value they have sent. A page that hands
back an already-used value ends the listing, so a misbehaving API cannot
keep the run looping forever.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import requests

from ..core.exceptions import PageFetchError
from ..models.resources import Page, PageRequest
from ..utils.logging_utils import get_logger
from ..utils.request_utils import RequestExecutor
from ..utils.response_utils import describe_error_body, is_success

logger = get_logger(__name__)

FetchPage = Callable[[PageRequest], Page]


@dataclass
class PaginationState:
    """Progress of one listing.

    Attributes:
        accumulated: Items collected so far, in API order
        cursor: Cursor or token to send with the next request
        page_count: Pages fetched so far
        seen_cursors: Every cursor already sent
    """

    accumulated: list[Any] = field(default_factory=list)
    cursor: str | None = None
    page_count: int = 0
    seen_cursors: set[str] = field(default_factory=set)

    def advance(self, cursor: str) -> None:
        self.cursor = cursor
        self.seen_cursors.add(cursor)

    def already_used(self, cursor: str | None) -> bool:
        return cursor is not None and (
            cursor == self.cursor or cursor in self.seen_cursors
        )


def fetch_json_page(
    executor: RequestExecutor,
    url: str,
    params: dict[str, Any],
    endpoint: str,
    items_key: str | None = None,
) -> dict[str, Any]:
    """GET one listing page and return its decoded JSON object.

    Args:
        executor: Request executor
        url: Absolute listing URL
        params: Query parameters
        endpoint: Short endpoint description for error messages
        items_key: Collection key that must hold a list of objects when
            present and not null

    Returns:
        Dict[str, Any]: Decoded response body

    Raises:
        PageFetchError: On transport failure, non-2xx status after retries,
            or a body that is not a JSON object or whose collection is malformed
    """
    try:
        response = executor.execute("GET", url, params=params)
    except requests.exceptions.RequestException as e:
        raise PageFetchError(
            f"GET {endpoint} failed", endpoint=endpoint, details=str(e)
        ) from e

    text = response.text or ""
    if not is_success(response):
        raise PageFetchError(
            f"GET {endpoint} failed {response.status_code}",
            status_code=response.status_code,
            endpoint=endpoint,
            details=describe_error_body(text),
        )

    try:
        data = json.loads(text)
    except ValueError as e:
        raise PageFetchError(
            f"GET {endpoint} returned invalid JSON.",
            status_code=response.status_code,
            endpoint=endpoint,
        ) from e

    if not isinstance(data, dict):
        raise PageFetchError(
            f"GET {endpoint} returned an unexpected body.",
            status_code=response.status_code,
            endpoint=endpoint,
        )

    items = data.get(items_key) if items_key else None
    if items is not None and (
        not isinstance(items, list)
        or not all(isinstance(item, dict) for item in items)
    ):
        raise PageFetchError(
            f"GET {endpoint} returned a malformed '{items_key}' list.",
            status_code=response.status_code,
            endpoint=endpoint,
        )
    return data


class NextTokenPaginator:
    """Collects a listing that returns an opaque ``next_token``.

    With ``empty_page_first`` an empty page ends the listing before the
    token is looked at, even when the server also sent a token. Without it
    the empty-page, missing-token and stalled-token checks are evaluated
    together as one stop condition.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        resource: str = "items",
        page_size: int = 50,
        empty_page_first: bool = False,
    ) -> None:
        self.fetch_page = fetch_page
        self.resource = resource
        self.page_size = page_size
        self.empty_page_first = empty_page_first
        self.state = PaginationState()
        self.stop_reason: str | None = None

    def collect(self) -> list[Any]:
        """Fetch pages until a stop condition fires.

        Returns:
            List: Every item of every page, in API order

        Raises:
            PageFetchError: If a page cannot be fetched
        """
        state = self.state
        while True:
            state.page_count += 1
            page = self.fetch_page(PageRequest(state.cursor, self.page_size))
            logger.info(
                f"{self.resource.capitalize()} page {state.page_count}: "
                f"received {len(page.items)} {self.resource}.",
                extra={"operation": f"list_{self.resource}", "page": state.page_count},
            )
            state.accumulated.extend(page.items)

            self.stop_reason = self._stop_reason(page)
            if self.stop_reason:
                logger.info(f"{self.stop_reason} Pagination complete.")
                break

            # _stop_reason guarantees a fresh token here
            state.advance(page.next_token)  # type: ignore[arg-type]

        logger.info(f"Collected total {len(state.accumulated)} {self.resource}.")
        return state.accumulated

    def _stop_reason(self, page: Page) -> str | None:
        next_token = page.next_token
        state = self.state

        if self.empty_page_first:
            if not page.items:
                return "Empty page returned."
            if not next_token:
                return "No next_token returned."
            if state.already_used(next_token):
                return "next_token did not advance."
            return None

        if not next_token or state.already_used(next_token) or not page.items:
            if not next_token:
                return "No next_token returned."
            if state.already_used(next_token):
                return "next_token did not advance."
            return "Empty page returned."
        return None


class CursorPaginator:
    """Collects a ``starting_after`` listing with a ``has_more`` flag.

    The cursor for the next request is the id of the last item on the
    current page.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        resource: str = "items",
        page_size: int = 50,
        label: str | None = None,
        cursor_of: Callable[[Any], str | None] | None = None,
    ) -> None:
        """Initialize the paginator.

        Args:
            fetch_page: Fetches one page for a ``PageRequest``
            resource: Plural resource name for log messages
            page_size: Items per page
            label: Log prefix, e.g. ``(1/3) jane@example.com (kp_1)``
            cursor_of: Derives the cursor from an item, defaults to its ``id``
        """
        self.fetch_page = fetch_page
        self.resource = resource
        self.page_size = page_size
        self.prefix = f"{label}: " if label else ""
        self.cursor_of = cursor_of or (lambda item: getattr(item, "id", None))
        self.state = PaginationState()
        self.stop_reason: str | None = None

    def collect(self) -> list[Any]:
        """Fetch pages until a stop condition fires.

        Returns:
            List: Every item of every page, in API order

        Raises:
            PageFetchError: If a page cannot be fetched
        """
        state = self.state
        while True:
            state.page_count += 1
            page = self.fetch_page(PageRequest(state.cursor, self.page_size))
            logger.info(
                f"{self.prefix}{self.resource} page {state.page_count} "
                f"returned {len(page.items)} {self.resource}.",
                extra={"operation": f"list_{self.resource}", "page": state.page_count},
            )

            if not page.items:
                logger.info(
                    f"{self.prefix}empty {self.resource} page. Pagination complete."
                )
                break

            state.accumulated.extend(page.items)

            if not page.has_more:
                logger.info(f"{self.prefix}has_more=false. Pagination complete.")
                break

            next_cursor = self.cursor_of(page.items[-1])
            if not next_cursor:
                logger.info(
                    f"{self.prefix}no {self.resource} cursor available. "
                    "Pagination complete."
                )
                break

            if state.already_used(next_cursor):
                logger.info(f"{self.prefix}cursor did not advance. Pagination complete.")
                break

            state.advance(next_cursor)

        logger.info(
            f"{self.prefix}collected {len(state.accumulated)} {self.resource}."
        )
        return state.accumulated
