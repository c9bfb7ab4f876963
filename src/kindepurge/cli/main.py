"""Click-based CLI entry point for kindepurge."""

import sys

import click

from ..utils.logging_utils import init_default_logging
from ..utils.rich_utils import install_rich_tracebacks
from .commands import RED, RESET, YELLOW, OperationHandler

page_size_option = click.option(
    "--page-size",
    type=int,
    default=None,
    help="Items per listing page (overrides KINDE_PAGE_SIZE)",
)
org_code_option = click.option(
    "--org-code",
    default=None,
    help="Organization code (overrides KINDE_ORG_CODE)",
)


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """kindepurge - bulk delete Kinde users and organization identities."""
    init_default_logging()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("--test-api", is_flag=True, help="Also fetch one users page")
def doctor(test_api: bool) -> None:
    """Test Kinde M2M credentials and API access."""
    handler = OperationHandler()
    sys.exit(handler.handle_doctor(test_api))


@cli.group()
def users() -> None:
    """Global user operations."""


@users.command("delete-all")
@page_size_option
def delete_all_users(page_size: int | None) -> None:
    """Delete every user of the business.

    Requires KINDE_CONFIRM_DELETE_ALL=true.
    """
    handler = OperationHandler()
    sys.exit(handler.handle_delete_all_users(page_size))


@users.command("preview")
@page_size_option
def preview_users(page_size: int | None) -> None:
    """Count the users delete-all would remove, without deleting."""
    handler = OperationHandler()
    sys.exit(handler.handle_preview_users(page_size))


@cli.group()
def org() -> None:
    """Organization identity operations."""


@org.command("delete-identities")
@org_code_option
@page_size_option
def delete_identities(org_code: str | None, page_size: int | None) -> None:
    """Delete every identity of every user in an organization.

    Requires KINDE_CONFIRM_DELETE_ALL=true.
    """
    handler = OperationHandler()
    sys.exit(handler.handle_delete_org_identities(org_code, page_size))


@org.command("preview")
@org_code_option
@page_size_option
def preview_identities(org_code: str | None, page_size: int | None) -> None:
    """Count organization users and identities, without deleting."""
    handler = OperationHandler()
    sys.exit(handler.handle_preview_org_identities(org_code, page_size))


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        install_rich_tracebacks()
        cli()
    except KeyboardInterrupt:
        click.echo(f"\n{YELLOW}Operation interrupted by user.{RESET}")
        sys.exit(130)
    except Exception as e:
        click.echo(f"{RED}Unexpected error: {e}{RESET}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
