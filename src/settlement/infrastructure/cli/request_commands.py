"""CLI commands for the DeliveryRequest aggregate."""

from __future__ import annotations

import click

from settlement.application.authorization import require_user
from settlement.application.submit_delivery_request import SubmitDeliveryRequestHandler
from settlement.domain.clock import parse_instant
from settlement.domain.exceptions import DomainException
from settlement.domain.model.quote import ServiceType
from settlement.domain.model.submission import DeliverySubmission
from settlement.domain.model.value_objects import Money
from settlement.infrastructure.bootstrap import submission_validator
from settlement.infrastructure.cli.context import AppContext, fail, pass_app
from settlement.infrastructure.cli.quote_commands import trip_options


@click.command("submit")
@trip_options
@click.option("--pickup", "pickup_address", required=True, help="Pickup address.")
@click.option("--dropoff", "dropoff_address", required=True, help="Dropoff address.")
@click.option("--priority-slot/--no-priority-slot", default=None)
@click.option("--preferred-driver", "preferred_driver_id", default=None)
@click.option("--lock-to-preferred/--no-lock-to-preferred", default=None)
@click.option("--delivery-fee", default="0", show_default=True)
@click.option("--discount", default="0", show_default=True)
@click.option("--quote-token", default=None, help="Token from 'quote issue'.")
@pass_app
def request_submit(
    app: AppContext,
    service_type: str,
    scheduled_start: str,
    delivery_fee: str,
    discount: str,
    quote_token: str | None,
    **fields,
) -> None:
    """Create a delivery request, held to its quote when one is given."""
    handler = SubmitDeliveryRequestHandler(
        request_repo=app.repos.delivery_requests,
        validator=submission_validator(app.settings),
    )

    try:
        caller = require_user(app.session)
        submission = DeliverySubmission(
            user_id=caller.id,
            service_type=ServiceType(service_type),
            scheduled_start=parse_instant(scheduled_start),
            delivery_fee=Money.of(delivery_fee),
            discount=Money.of(discount),
            **fields,
        )
        dto = handler.handle(submission, quote_token=quote_token)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Delivery request {dto.id} created  (service={dto.service_type})")
    locked = "  (locked)" if dto.lock_to_preferred else ""
    click.echo(f"Scheduled:        {dto.scheduled_start}")
    click.echo(f"Priority slot:    {dto.priority_slot}")
    click.echo(f"Preferred driver: {dto.preferred_driver_id or '-'}{locked}")
    click.echo(f"Quoted:           {dto.quoted}")
