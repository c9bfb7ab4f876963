"""Command handlers for CLI operations."""

from dataclasses import replace

import click

from ..core.config import get_env_config
from ..core.exceptions import AuthError, ConfigError, PageFetchError
from ..models.config import KindeConfig
from ..operations.identity_ops import delete_org_identities
from ..operations.preview_ops import preview_org_identities, preview_users
from ..operations.user_ops import delete_all_users
from ..utils.rich_utils import print_summary

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
RESET = "\033[0m"

# Errors that abort a run; anything else is a bug and keeps its traceback
RUN_ERRORS = (ConfigError, AuthError, PageFetchError)


class OperationHandler:
    """Handles CLI operations for Kinde bulk deletion.

    Every ``handle_*`` method returns the process exit code.
    """

    def _load_config(
        self, page_size: int | None = None, org_code: str | None = None
    ) -> KindeConfig:
        """Read configuration from the environment and apply CLI overrides.

        Raises:
            ConfigError: If configuration is missing or invalid
        """
        config = get_env_config()
        if page_size is not None:
            if page_size <= 0:
                raise ConfigError(
                    f'Invalid --page-size="{page_size}". Expected a positive integer.'
                )
            config = replace(config, page_size=page_size)
        if org_code:
            config = replace(config, org_code=org_code)
        return config

    def _handle_run_error(self, error: Exception, operation_name: str) -> int:
        """Report an aborted run.

        Args:
            error: The exception that aborted the run
            operation_name: Name of the operation that failed

        Returns:
            int: Exit code 1
        """
        click.echo(f"{RED}{operation_name} failed: {error}{RESET}", err=True)
        return 1

    def handle_doctor(self, test_api: bool = False) -> int:
        """Check credentials and optionally API access."""
        from ..core.auth import doctor as auth_doctor

        try:
            config = self._load_config()
        except ConfigError as e:
            return self._handle_run_error(e, "Doctor check")

        result = auth_doctor(config, test_api)
        if result["success"]:
            click.echo(f"{GREEN}✓ Kinde credentials are valid for {config.host}{RESET}")
            if test_api:
                click.echo(f"{GREEN}✓ API access test successful{RESET}")
            return 0

        click.echo(
            f"{RED}✗ Kinde credentials test failed: "
            f"{result.get('error') or result['details']}{RESET}",
            err=True,
        )
        return 1

    def handle_delete_all_users(self, page_size: int | None = None) -> int:
        """Run the global user deletion flow."""
        try:
            config = self._load_config(page_size=page_size)
            result = delete_all_users(config)
        except RUN_ERRORS as e:
            return self._handle_run_error(e, "Delete all users")

        print_summary("Delete all users", result.to_dict())
        if result.failed:
            click.echo(
                f"{YELLOW}{result.failed} user deletion(s) failed.{RESET}", err=True
            )
        return result.exit_code

    def handle_delete_org_identities(
        self, org_code: str | None = None, page_size: int | None = None
    ) -> int:
        """Run the organization identity deletion flow."""
        try:
            config = self._load_config(page_size=page_size, org_code=org_code)
            totals = delete_org_identities(config)
        except RUN_ERRORS as e:
            return self._handle_run_error(e, "Delete organization identities")

        print_summary(f"Organization {config.org_code}", totals.to_dict())
        if totals.identities_failed:
            click.echo(
                f"{YELLOW}{totals.identities_failed} identity deletion(s) failed."
                f"{RESET}",
                err=True,
            )
        return totals.exit_code

    def handle_preview_users(self, page_size: int | None = None) -> int:
        """List users without deleting anything."""
        try:
            config = self._load_config(page_size=page_size)
            result = preview_users(config)
        except RUN_ERRORS as e:
            return self._handle_run_error(e, "Preview users")

        print_summary("Preview: delete all users", {"users": result.total_users})
        return 0

    def handle_preview_org_identities(
        self, org_code: str | None = None, page_size: int | None = None
    ) -> int:
        """List organization users and identity counts without deleting."""
        try:
            config = self._load_config(page_size=page_size, org_code=org_code)
            result = preview_org_identities(config)
        except RUN_ERRORS as e:
            return self._handle_run_error(e, "Preview organization identities")

        print_summary(
            f"Preview: organization {config.org_code}",
            {"users": result.total_users, "identities": result.total_identities},
        )
        return 0
