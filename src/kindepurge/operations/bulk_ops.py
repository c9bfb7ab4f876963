"""Sequential, failure-tolerant bulk deletion."""

from collections.abc import Callable, Iterable
from typing import Any

from ..core.exceptions import AuthError
from ..models.resources import BulkResult
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


def dedupe_by_id(items: Iterable[Any]) -> list[Any]:
    """Drop repeated ids, keeping the first occurrence and its position.

    Items without an id cannot be deleted and are skipped.
    """
    seen: set[str] = set()
    unique = []
    for item in items:
        item_id = getattr(item, "id", None)
        if not item_id:
            logger.warning(f"Skipping item without id: {item!r}")
            continue
        if item_id in seen:
            continue
        seen.add(item_id)
        unique.append(item)
    return unique


def delete_all(
    items: Iterable[Any],
    delete_one: Callable[[Any], None],
    resource: str = "item",
    describe: Callable[[Any], str] | None = None,
    prefix: str = "",
) -> BulkResult:
    """Delete every unique item, one at a time, never aborting the batch.

    Args:
        items: Items to delete; each needs an ``id`` attribute
        delete_one: Deletes a single item, raising on failure
        resource: Singular resource name for log messages
        describe: Renders an item for logs, defaults to its ``label``
        prefix: Log prefix, e.g. the owning user's label

    Returns:
        BulkResult: Counts with ``processed == deleted + failed``

    Raises:
        AuthError: If a token cannot be obtained; no later delete could
            succeed either
    """
    describe = describe or (lambda item: getattr(item, "label", item.id))
    unique = dedupe_by_id(items)
    total = len(unique)
    result = BulkResult()

    for index, item in enumerate(unique, 1):
        try:
            logger.info(
                f"{prefix}({index}/{total}) Deleting {resource} {describe(item)}...",
                extra={"operation": f"delete_{resource}"},
            )
            delete_one(item)
            result.deleted += 1
        except AuthError:
            raise
        except Exception as e:
            result.failed += 1
            logger.error(
                f"{prefix}Failed to delete {resource} {item.id}: {e}",
                extra={"operation": f"delete_{resource}", "status": "failed"},
            )
        result.processed = index

    return result
