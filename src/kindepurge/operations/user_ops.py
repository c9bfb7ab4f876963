"""Global user listing and deletion."""

import requests

from ..core.config import require_confirmation
from ..core.exceptions import DeleteError
from ..models.config import KindeConfig
from ..models.resources import BulkResult, Page, PageRequest, User
from ..utils.logging_utils import get_logger
from ..utils.request_utils import RequestExecutor, build_executor
from ..utils.response_utils import describe_error_body, is_success
from .bulk_ops import delete_all
from .pagination import NextTokenPaginator, fetch_json_page

logger = get_logger(__name__)


def get_users_page(
    executor: RequestExecutor, config: KindeConfig, next_token: str | None = None
) -> Page:
    """Fetch one page of ``GET /api/v1/users``.

    Raises:
        PageFetchError: If the page cannot be fetched or parsed
    """
    params: dict[str, str | int] = {"page_size": config.page_size}
    if next_token:
        params["next_token"] = next_token

    logger.info(
        f"Fetching users page{f' (next_token={next_token})' if next_token else ''}...",
        extra={"operation": "list_users", "api_endpoint": "/users"},
    )
    data = fetch_json_page(
        executor, config.api_url("users"), params, "/users", items_key="users"
    )
    return Page(
        items=[User.from_api_data(user) for user in data.get("users") or []],
        next_token=data.get("next_token"),
    )


def collect_all_users(executor: RequestExecutor, config: KindeConfig) -> list[User]:
    """Enumerate every user of the business.

    Raises:
        PageFetchError: If any page cannot be fetched
    """

    def fetch(request: PageRequest) -> Page:
        return get_users_page(executor, config, request.cursor)

    paginator = NextTokenPaginator(fetch, resource="users", page_size=config.page_size)
    return paginator.collect()


def delete_user(executor: RequestExecutor, config: KindeConfig, user_id: str) -> None:
    """Delete one user via ``DELETE /api/v1/user?id=<id>``.

    Raises:
        DeleteError: If the API does not confirm the deletion
    """
    endpoint = "/user"
    try:
        response = executor.execute(
            "DELETE", config.api_url("user"), params={"id": user_id}
        )
    except requests.exceptions.RequestException as e:
        raise DeleteError(
            f"DELETE {endpoint} failed",
            resource_id=user_id,
            endpoint=endpoint,
            details=str(e),
        ) from e

    if not is_success(response):
        raise DeleteError(
            f"DELETE {endpoint} failed {response.status_code}",
            resource_id=user_id,
            status_code=response.status_code,
            endpoint=endpoint,
            details=describe_error_body(response.text or ""),
        )

    logger.info(
        f"Deleted user {user_id}.",
        extra={"operation": "delete_user", "user_id": user_id, "status": "success"},
    )


def delete_all_users(
    config: KindeConfig, executor: RequestExecutor | None = None
) -> BulkResult:
    """Delete every user of the business.

    Args:
        config: Run configuration; must carry ``confirm_delete_all``
        executor: Executor to use, built from ``config`` when omitted

    Returns:
        BulkResult: Deletion counts; ``exit_code`` is 1 if any delete failed

    Raises:
        ConfigError: If the run is not confirmed (before any request)
        AuthError: If no token can be obtained
        PageFetchError: If the user listing fails
    """
    require_confirmation(config)
    executor = executor or build_executor(config)

    logger.info(f"Starting delete-all-users against {config.host}")
    logger.info(f"page_size={config.page_size}")

    users = collect_all_users(executor, config)
    if not users:
        logger.info("No users found. Nothing to delete.")
        return BulkResult()

    result = delete_all(
        users,
        lambda user: delete_user(executor, config, user.id),
        resource="user",
    )

    logger.info(
        f"Deletion finished. success={result.deleted}, failed={result.failed}",
        extra={"operation": "delete_all_users"},
    )
    return result
