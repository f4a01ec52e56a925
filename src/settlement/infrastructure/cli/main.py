import logging

import click

from settlement.domain.exceptions import ConfigurationError
from settlement.infrastructure.bootstrap import configure_logging, repositories
from settlement.infrastructure.cli.admin_commands import admin_resolve_dispute, admin_unlock
from settlement.infrastructure.cli.context import AppContext, SessionUserProvider
from settlement.infrastructure.cli.order_commands import (
    order_confirm_items,
    order_dispute,
    order_show,
)
from settlement.infrastructure.cli.quote_commands import quote_issue
from settlement.infrastructure.cli.receipt_commands import receipt_verify
from settlement.infrastructure.cli.request_commands import request_submit
from settlement.infrastructure.cli.user_commands import user_add
from settlement.infrastructure.config import Settings


@click.group()
@click.option("--as", "as_user", envvar="SETTLE_USER", default=None, help="Act as this user ID.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, as_user: str | None, verbose: bool) -> None:
    """Settle: delivery order settlement."""
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    configure_logging(logging.DEBUG if verbose else settings.log_level)

    repos = repositories(settings)
    ctx.obj = AppContext(
        settings=settings,
        repos=repos,
        session=SessionUserProvider(repos.users, as_user),
    )


@cli.group()
def user() -> None:
    """Manage callers."""


@cli.group()
def quote() -> None:
    """Issue signed quotes."""


@cli.group()
def request() -> None:
    """Submit delivery requests."""


@cli.group()
def receipt() -> None:
    """Record receipt verifications."""


@cli.group()
def order() -> None:
    """Confirm, dispute and inspect orders."""


@cli.group()
def admin() -> None:
    """Administrative settlement actions."""


# Register subcommands
user.add_command(user_add)
quote.add_command(quote_issue)
request.add_command(request_submit)
receipt.add_command(receipt_verify)
order.add_command(order_confirm_items)
order.add_command(order_dispute)
order.add_command(order_show)
admin.add_command(admin_resolve_dispute)
admin.add_command(admin_unlock)
