"""Preview operations - enumerate what a deletion run would touch."""

from dataclasses import dataclass, field

from ..core.config import require_org_code
from ..models.config import KindeConfig
from ..utils.logging_utils import get_logger
from ..utils.request_utils import RequestExecutor, build_executor
from .bulk_ops import dedupe_by_id
from .identity_ops import collect_organization_users, collect_user_identities
from .user_ops import collect_all_users

logger = get_logger(__name__)


@dataclass
class PreviewResult:
    """Result of a dry-run preview.

    Attributes:
        operation: Flow being previewed
        total_users: Users found by the listing
        identity_counts: Unique identity ids per user id (org preview only)
    """

    operation: str
    total_users: int = 0
    identity_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_identities(self) -> int:
        return sum(self.identity_counts.values())


def preview_users(
    config: KindeConfig, executor: RequestExecutor | None = None
) -> PreviewResult:
    """Count the users ``delete_all_users`` would delete.

    No confirmation is needed; nothing is deleted.
    """
    executor = executor or build_executor(config)
    users = dedupe_by_id(collect_all_users(executor, config))
    logger.info(f"🔍 DRY RUN: {len(users)} users would be deleted.")
    return PreviewResult(operation="delete-all-users", total_users=len(users))


def preview_org_identities(
    config: KindeConfig, executor: RequestExecutor | None = None
) -> PreviewResult:
    """Count the identities ``delete_org_identities`` would delete, per user.

    Raises:
        ConfigError: If no org code is configured
    """
    org_code = require_org_code(config)
    executor = executor or build_executor(config)

    org_users = dedupe_by_id(collect_organization_users(executor, config, org_code))
    result = PreviewResult(
        operation="delete-org-identities", total_users=len(org_users)
    )
    for index, user in enumerate(org_users, 1):
        label = f"({index}/{len(org_users)}) {user.label}"
        identities = collect_user_identities(executor, config, user, label=label)
        result.identity_counts[user.id] = len(dedupe_by_id(identities))

    logger.info(
        f"🔍 DRY RUN: {result.total_identities} identities across "
        f"{result.total_users} users of org {org_code} would be deleted."
    )
    return result
