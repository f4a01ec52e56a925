"""CLI commands for confirming, disputing and inspecting an order."""

from __future__ import annotations

import click

from settlement.application.authorization import require_user
from settlement.application.confirm_items import ConfirmItemsHandler
from settlement.application.dto import SettlementDTO
from settlement.application.file_dispute import FileDisputeHandler
from settlement.application.show_settlement import ShowSettlementHandler
from settlement.domain.exceptions import DomainException
from settlement.domain.model.user import Role
from settlement.domain.service.audit_trail import AuditTrail
from settlement.domain.service.snapshot import DisputedItemSpec, SnapshotItemSpec
from settlement.infrastructure.bootstrap import lock_evaluator
from settlement.infrastructure.cli.context import AppContext, fail, pass_app


def _parse_items(raw: str) -> list[SnapshotItemSpec]:
    """Parse 'Milk:2:3.50,Bread:1' into SnapshotItemSpec list (price optional)."""
    specs: list[SnapshotItemSpec] = []
    for entry in raw.split(","):
        parts = [p.strip() for p in entry.strip().split(":")]
        if len(parts) not in (2, 3) or not parts[0]:
            raise click.BadParameter(
                f"Invalid item format '{entry.strip()}'. Expected 'Name:Qty' or 'Name:Qty:Price'."
            )
        try:
            qty = int(parts[1])
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{parts[1]}' for item '{parts[0]}'."
            )
        price = parts[2] if len(parts) == 3 else None
        specs.append(SnapshotItemSpec(name=parts[0], quantity=qty, unit_price=price))
    return specs


def _parse_disputed(raw: tuple[str, ...]) -> list[DisputedItemSpec]:
    """Parse repeated 'item:qty:REASON[:details]' values."""
    specs: list[DisputedItemSpec] = []
    for entry in raw:
        parts = entry.split(":", 3)
        if len(parts) < 3:
            raise click.BadParameter(
                f"Invalid disputed item '{entry}'. Expected 'Item:Qty:REASON[:details]'."
            )
        try:
            qty = int(parts[1])
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{parts[1]}' for item '{parts[0]}'."
            )
        specs.append(
            DisputedItemSpec(
                item=parts[0].strip(),
                quantity=qty,
                reason=parts[2].strip().upper(),
                details=parts[3] if len(parts) == 4 else None,
            )
        )
    return specs


@click.command("confirm-items")
@click.option("--request-id", required=True, help="Delivery request ID.")
@click.option(
    "--items",
    default=None,
    help="Items as 'Name:Qty[:Price],...'. Defaults to the receipt lines.",
)
@pass_app
def order_confirm_items(app: AppContext, request_id: str, items: str | None) -> None:
    """Confirm the items as delivered (freezes the snapshot)."""
    specs = _parse_items(items) if items else None

    handler = ConfirmItemsHandler(
        request_repo=app.repos.delivery_requests,
        receipt_repo=app.repos.receipts,
        confirmation_repo=app.repos.confirmations,
        lock_evaluator=lock_evaluator(app.repos),
    )

    try:
        caller = require_user(app.session)
        result = handler.handle(request_id, caller.id, explicit_items=specs)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Confirmed {result.item_count} item(s)  (confirmation={result.confirmation_id})")
    click.echo(f"Total:  {result.total_snapshot}")
    click.echo(f"Locked: {result.locked}")


@click.command("dispute")
@click.option("--request-id", required=True, help="Delivery request ID.")
@click.option(
    "--item",
    "items",
    multiple=True,
    required=True,
    help="Disputed item as 'Item:Qty:REASON[:details]'. Repeatable.",
)
@click.option("--notes", default=None, help="Free-text dispute notes.")
@click.option("--evidence", multiple=True, help="Evidence URL. Repeatable.")
@pass_app
def order_dispute(
    app: AppContext,
    request_id: str,
    items: tuple[str, ...],
    notes: str | None,
    evidence: tuple[str, ...],
) -> None:
    """File (or re-file) a dispute against a locked order."""
    specs = _parse_disputed(items)

    handler = FileDisputeHandler(
        request_repo=app.repos.delivery_requests,
        confirmation_repo=app.repos.confirmations,
        lock_evaluator=lock_evaluator(app.repos),
    )

    try:
        caller = require_user(app.session)
        result = handler.handle(
            request_id,
            caller.id,
            specs,
            dispute_notes=notes,
            evidence_urls=list(evidence),
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Dispute filed  (confirmation={result.confirmation_id}, status={result.dispute_status})")
    for url in result.evidence_urls:
        click.echo(f"  evidence: {url}")


def _display_settlement(dto: SettlementDTO) -> None:
    """Shared formatting for displaying a settlement view."""
    click.echo(f"Delivery request {dto.delivery_request_id}")
    click.echo(f"Receipt:     {dto.receipt_status or 'none'}  (verified={dto.receipt_verified})")
    click.echo(f"Confirmed:   {dto.customer_confirmed}")
    click.echo(f"Locked:      {dto.is_locked}  (due={dto.locked})")
    if dto.locked_at:
        click.echo(f"Locked at:   {dto.locked_at}")
    click.echo(f"Lock reason: {dto.lock_reason or '-'}")
    click.echo(f"Refunds:     {dto.refund_policy}")

    if dto.items:
        click.echo()
        click.echo(f"  {'Key':<20} {'Item':<20} {'Qty':>5} {'Price':>10}")
        click.echo(f"  {'-'*58}")
        for item in dto.items:
            click.echo(
                f"  {item.item_key:<20} {item.name:<20} {item.quantity:>5} {item.unit_price or '-':>10}"
            )
        click.echo(f"  {'-'*58}")
        click.echo(f"  {'Total':<47} {dto.total_snapshot or '-':>10}")

    if dto.dispute_status:
        click.echo()
        click.echo(f"Dispute:     {dto.dispute_status}")
        if dto.refund_amount is not None:
            click.echo(f"Refund:      {dto.refund_amount}")

    if dto.audit:
        click.echo()
        click.echo("Audit:")
        for line in dto.audit:
            click.echo(f"  {line.created_at}  {line.action:<6}  {line.actor_id}  {line.reason or ''}")


@click.command("show")
@click.option("--request-id", required=True, help="Delivery request ID.")
@pass_app
def order_show(app: AppContext, request_id: str) -> None:
    """Show the settlement state of a delivery request."""
    repos = app.repos
    handler = ShowSettlementHandler(
        request_repo=repos.delivery_requests,
        confirmation_repo=repos.confirmations,
        lock_evaluator=lock_evaluator(repos),
        audit_trail=AuditTrail(repos.audit_log),
    )

    try:
        caller = require_user(app.session)
        viewer = None if caller.role is Role.ADMIN else caller.id
        dto = handler.handle(request_id, viewer_id=viewer)
    except DomainException as exc:
        raise fail(exc)

    _display_settlement(dto)
