"""Admin-only CLI commands: dispute resolution and manual unlock."""

from __future__ import annotations

import click

from settlement.application.authorization import require_role
from settlement.application.resolve_dispute import ResolveDisputeHandler
from settlement.application.unlock_delivery_request import UnlockDeliveryRequestHandler
from settlement.domain.exceptions import DomainException
from settlement.domain.model.order_confirmation import Resolution
from settlement.domain.model.user import Role
from settlement.infrastructure.bootstrap import lock_evaluator
from settlement.infrastructure.cli.context import AppContext, fail, pass_app


@click.command("resolve-dispute")
@click.option("--confirmation-id", required=True, help="Order confirmation ID.")
@click.option(
    "--resolution",
    required=True,
    type=click.Choice([r.value for r in Resolution]),
    help="Outcome.",
)
@click.option("--notes", default=None, help="Resolution notes.")
@click.option(
    "--refund",
    "refund_amount",
    default=None,
    help="Refund amount for APPROVED. Defaults to the disputed items' value.",
)
@pass_app
def admin_resolve_dispute(
    app: AppContext,
    confirmation_id: str,
    resolution: str,
    notes: str | None,
    refund_amount: str | None,
) -> None:
    """Resolve a customer dispute."""
    handler = ResolveDisputeHandler(confirmation_repo=app.repos.confirmations)

    try:
        admin = require_role(app.session, Role.ADMIN)
        result = handler.handle(
            confirmation_id,
            admin.id,
            Resolution(resolution),
            notes=notes,
            refund_amount=refund_amount,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Dispute {result.confirmation_id} -> {result.dispute_status}")
    if result.refund_amount is not None:
        click.echo(f"Refund:      {result.refund_amount}")
    if result.resolved_at:
        click.echo(f"Resolved at: {result.resolved_at} by {result.resolved_by_user_id}")


@click.command("unlock")
@click.option("--request-id", required=True, help="Delivery request ID.")
@click.option("--reason", required=True, help="Why the lock is lifted.")
@pass_app
def admin_unlock(app: AppContext, request_id: str, reason: str) -> None:
    """Lift the settlement lock on a delivery request."""
    handler = UnlockDeliveryRequestHandler(lock_evaluator=lock_evaluator(app.repos))

    try:
        admin = require_role(app.session, Role.ADMIN)
        handler.handle(request_id, admin.id, reason)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Delivery request {request_id} unlocked.")
