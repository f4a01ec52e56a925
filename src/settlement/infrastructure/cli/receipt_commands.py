"""CLI commands for receipt verification outcomes."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import click

from settlement.application.authorization import require_role
from settlement.application.record_receipt_verification import (
    RecordReceiptVerificationHandler,
)
from settlement.domain.exceptions import DomainException
from settlement.domain.model.receipt_verification import (
    ExtractedReceipt,
    VerificationStatus,
)
from settlement.domain.model.user import Role
from settlement.domain.model.value_objects import Money
from settlement.infrastructure.bootstrap import lock_evaluator
from settlement.infrastructure.cli.context import AppContext, fail, pass_app


def _parse_lines(raw: str | None) -> list[dict]:
    """Parse a JSON array of receipt line objects."""
    if not raw:
        return []
    try:
        lines = json.loads(raw)
    except json.JSONDecodeError:
        raise click.BadParameter("--lines must be a JSON array of objects.")
    if not isinstance(lines, list):
        raise click.BadParameter("--lines must be a JSON array of objects.")
    return lines


@click.command("verify")
@click.option("--request-id", required=True, help="Delivery request ID.")
@click.option(
    "--image",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Receipt image file.",
)
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in VerificationStatus]),
    help="Verification outcome.",
)
@click.option("--vendor", default=None, help="Extracted vendor name.")
@click.option("--subtotal", default=None, help="Extracted subtotal, e.g. 42.50.")
@click.option("--receipt-date", default=None, help="Extracted date (YYYY-MM-DD).")
@click.option("--lines", default=None, help="Extracted line items as a JSON array.")
@pass_app
def receipt_verify(
    app: AppContext,
    request_id: str,
    image: Path,
    status: str,
    vendor: str | None,
    subtotal: str | None,
    receipt_date: str | None,
    lines: str | None,
) -> None:
    """Record a verification outcome for a receipt image (admin)."""
    try:
        parsed_date = date.fromisoformat(receipt_date) if receipt_date else None
    except ValueError:
        raise click.BadParameter(f"Invalid date '{receipt_date}'.")
    items = _parse_lines(lines)

    handler = RecordReceiptVerificationHandler(
        request_repo=app.repos.delivery_requests,
        receipt_repo=app.repos.receipts,
        lock_evaluator=lock_evaluator(app.repos),
    )

    try:
        require_role(app.session, Role.ADMIN)
        dto = handler.handle(
            request_id,
            image.read_bytes(),
            VerificationStatus(status),
            ExtractedReceipt(
                vendor_name=vendor,
                subtotal=Money.of(subtotal) if subtotal is not None else None,
                receipt_date=parsed_date,
                items=items,
            ),
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Verification {dto.id} recorded  (status={dto.status})")
    click.echo(f"Content hash: {dto.content_hash}")
    click.echo(f"Locked:       {dto.locked}")
