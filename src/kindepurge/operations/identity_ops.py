"""Organization user listing and per-user identity deletion."""

from urllib.parse import quote

import requests

from ..core.config import require_confirmation, require_org_code
from ..core.exceptions import DeleteError
from ..models.config import KindeConfig
from ..models.resources import (
    BulkResult,
    Identity,
    OrgDeletionTotals,
    Page,
    PageRequest,
    User,
)
from ..utils.logging_utils import get_logger
from ..utils.request_utils import RequestExecutor, build_executor
from ..utils.response_utils import describe_error_body, is_success
from .bulk_ops import dedupe_by_id, delete_all
from .pagination import CursorPaginator, NextTokenPaginator, fetch_json_page

logger = get_logger(__name__)


def _segment(value: str) -> str:
    return quote(value, safe="")


def get_organization_users_page(
    executor: RequestExecutor,
    config: KindeConfig,
    org_code: str,
    next_token: str | None = None,
) -> Page:
    """Fetch one page of ``GET /api/v1/organizations/{org_code}/users``.

    Raises:
        PageFetchError: If the page cannot be fetched or parsed
    """
    params: dict[str, str | int] = {"page_size": config.page_size}
    if next_token:
        params["next_token"] = next_token

    logger.info(
        f"Fetching org users page{f' (next_token={next_token})' if next_token else ''}...",
        extra={"operation": "list_organization_users", "org_code": org_code},
    )
    data = fetch_json_page(
        executor,
        config.api_url(f"organizations/{_segment(org_code)}/users"),
        params,
        f"/organizations/{org_code}/users",
        items_key="organization_users",
    )
    return Page(
        items=[
            User.from_api_data(user) for user in data.get("organization_users") or []
        ],
        next_token=data.get("next_token"),
    )


def collect_organization_users(
    executor: RequestExecutor, config: KindeConfig, org_code: str
) -> list[User]:
    """Enumerate every member of an organization.

    An empty page ends the listing even if it carries a ``next_token``.

    Raises:
        PageFetchError: If any page cannot be fetched
    """

    def fetch(request: PageRequest) -> Page:
        return get_organization_users_page(executor, config, org_code, request.cursor)

    paginator = NextTokenPaginator(
        fetch,
        resource="organization users",
        page_size=config.page_size,
        empty_page_first=True,
    )
    return paginator.collect()


def get_user_identities_page(
    executor: RequestExecutor,
    config: KindeConfig,
    user_id: str,
    starting_after: str | None = None,
    ending_before: str | None = None,
) -> Page:
    """Fetch one page of ``GET /api/v1/users/{user_id}/identities``.

    Raises:
        PageFetchError: If the page cannot be fetched or parsed
    """
    params: dict[str, str | int] = {"page_size": config.page_size}
    if starting_after:
        params["starting_after"] = starting_after
    if ending_before:
        params["ending_before"] = ending_before

    data = fetch_json_page(
        executor,
        config.api_url(f"users/{_segment(user_id)}/identities"),
        params,
        f"/users/{user_id}/identities",
        items_key="identities",
    )
    return Page(
        items=[Identity.from_api_data(item) for item in data.get("identities") or []],
        has_more=bool(data.get("has_more")),
    )


def collect_user_identities(
    executor: RequestExecutor,
    config: KindeConfig,
    user: User,
    label: str | None = None,
) -> list[Identity]:
    """Enumerate every identity of one user.

    Raises:
        PageFetchError: If any page cannot be fetched
    """

    def fetch(request: PageRequest) -> Page:
        return get_user_identities_page(executor, config, user.id, request.cursor)

    paginator = CursorPaginator(
        fetch,
        resource="identities",
        page_size=config.page_size,
        label=label or user.label,
    )
    return paginator.collect()


def delete_identity(
    executor: RequestExecutor, config: KindeConfig, identity_id: str
) -> None:
    """Delete one identity via ``DELETE /api/v1/identities/{identity_id}``.

    Raises:
        DeleteError: If the API does not confirm the deletion
    """
    endpoint = f"/identities/{identity_id}"
    try:
        response = executor.execute(
            "DELETE", config.api_url(f"identities/{_segment(identity_id)}")
        )
    except requests.exceptions.RequestException as e:
        raise DeleteError(
            f"DELETE {endpoint} failed",
            resource_id=identity_id,
            endpoint=endpoint,
            details=str(e),
        ) from e

    if not is_success(response):
        raise DeleteError(
            f"DELETE {endpoint} failed {response.status_code}",
            resource_id=identity_id,
            status_code=response.status_code,
            endpoint=endpoint,
            details=describe_error_body(response.text or ""),
        )


def delete_user_identities(
    executor: RequestExecutor,
    config: KindeConfig,
    user: User,
    user_index: int,
    total_users: int,
) -> BulkResult:
    """Collect and delete all identities of one organization user.

    Args:
        executor: Request executor
        config: Run configuration
        user: Organization user whose identities are deleted
        user_index: 1-based position of the user, for progress labels
        total_users: Number of users in the run

    Returns:
        BulkResult: Identity deletion counts for this user
    """
    label = f"({user_index}/{total_users}) {user.label}"
    logger.info(
        f"{label}: processing user...",
        extra={"operation": "delete_user_identities", "user_id": user.id},
    )

    identities = collect_user_identities(executor, config, user, label=label)
    if not identities:
        logger.info(f"{label}: no identities to delete.")
        return BulkResult()

    result = delete_all(
        identities,
        lambda identity: delete_identity(executor, config, identity.id),
        resource="identity",
        prefix=f"{label}: ",
    )

    logger.info(
        f"{label}: finished. identities_processed={result.processed}, "
        f"deleted={result.deleted}, failed={result.failed}",
        extra={"operation": "delete_user_identities", "user_id": user.id},
    )
    return result


def delete_org_identities(
    config: KindeConfig, executor: RequestExecutor | None = None
) -> OrgDeletionTotals:
    """Delete every identity of every member of the configured organization.

    Users are handled strictly one after another.

    Args:
        config: Run configuration; needs ``org_code`` and ``confirm_delete_all``
        executor: Executor to use, built from ``config`` when omitted

    Returns:
        OrgDeletionTotals: Aggregated counts; ``exit_code`` is 1 if any
        identity deletion failed

    Raises:
        ConfigError: If the run is not confirmed or no org code is set
            (before any request)
        AuthError: If no token can be obtained
        PageFetchError: If a user or identity listing fails
    """
    require_confirmation(config)
    org_code = require_org_code(config)
    executor = executor or build_executor(config)

    logger.info(f"Starting delete-org-users-identities against {config.host}")
    logger.info(f"org_code={org_code}, page_size={config.page_size}")

    totals = OrgDeletionTotals()
    # A member listed on several pages is processed once
    org_users = dedupe_by_id(collect_organization_users(executor, config, org_code))
    if not org_users:
        logger.info("No users found in organization. Nothing to delete.")
        return totals

    for index, user in enumerate(org_users, 1):
        totals.add(
            delete_user_identities(executor, config, user, index, len(org_users))
        )

    logger.info(
        f"Deletion finished for org {org_code}. "
        f"users_processed={totals.users_processed}, "
        f"identities_processed={totals.identities_processed}, "
        f"identities_deleted={totals.identities_deleted}, "
        f"identities_failed={totals.identities_failed}",
        extra={"operation": "delete_org_identities", "org_code": org_code},
    )
    return totals
