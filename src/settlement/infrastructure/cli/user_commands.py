"""CLI commands for caller identities."""

from __future__ import annotations

import click

from settlement.domain.model.user import Role, User
from settlement.infrastructure.cli.context import AppContext, pass_app


@click.command("add")
@click.option("--id", "user_id", required=True, help="User ID.")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.CUSTOMER.value,
    show_default=True,
    help="Caller role.",
)
@pass_app
def user_add(app: AppContext, user_id: str, role: str) -> None:
    """Register (or re-role) a user."""
    app.repos.users.save(User(id=user_id, role=Role(role)))
    click.echo(f"User {user_id} saved  (role={role})")
