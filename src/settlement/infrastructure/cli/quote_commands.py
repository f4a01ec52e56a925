"""CLI commands for quotes."""

from __future__ import annotations

import click

from settlement.application.authorization import require_user
from settlement.application.dto import QuoteRequest
from settlement.application.issue_quote import IssueQuoteHandler
from settlement.domain.clock import parse_instant
from settlement.domain.exceptions import DomainException
from settlement.domain.model.quote import ServiceType
from settlement.infrastructure.bootstrap import quote_signer
from settlement.infrastructure.cli.context import AppContext, fail, pass_app


def trip_options(func):
    """Options shared by ``quote issue`` and ``request submit``."""
    options = [
        click.option(
            "--service-type",
            required=True,
            type=click.Choice([s.value for s in ServiceType]),
            help="Kind of delivery.",
        ),
        click.option(
            "--scheduled-start",
            required=True,
            help="ISO-8601 instant with offset, e.g. 2026-03-01T12:00:00Z.",
        ),
        click.option("--travel-minutes", type=int, default=0, show_default=True),
        click.option("--wait-minutes", type=int, default=0, show_default=True),
        click.option("--sit-and-wait", is_flag=True, default=False),
        click.option("--stops", "number_of_stops", type=int, default=1, show_default=True),
        click.option("--return-or-exchange", is_flag=True, default=False),
        click.option("--cash-handling", is_flag=True, default=False),
        click.option("--peak-hours", is_flag=True, default=False),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command("issue")
@trip_options
@click.option("--priority-slot", is_flag=True, default=False)
@click.option("--preferred-driver", "preferred_driver_id", default=None)
@click.option("--lock-to-preferred", is_flag=True, default=False)
@click.option("--advance-discount-max", type=int, default=0, show_default=True)
@pass_app
def quote_issue(app: AppContext, service_type: str, scheduled_start: str, **fields) -> None:
    """Price a trip and print its signed quote token."""
    handler = IssueQuoteHandler(signer=quote_signer(app.settings))

    try:
        caller = require_user(app.session)
        dto = handler.handle(
            caller.id,
            QuoteRequest(
                service_type=ServiceType(service_type),
                scheduled_start=parse_instant(scheduled_start),
                **fields,
            ),
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Token:      {dto.token}")
    click.echo(f"Quoted at:  {dto.quoted_at}")
    click.echo(f"Expires at: {dto.expires_at}")
