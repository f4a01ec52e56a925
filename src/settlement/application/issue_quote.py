"""Application service: Issue Quote use case.

Signs the exact parameters being priced so the later submission can be
held to them.
"""

from __future__ import annotations

from settlement.application.dto import QuoteDTO, QuoteRequest
from settlement.domain.clock import Clock, format_instant, utc_now
from settlement.domain.model.quote import QuotePayload
from settlement.domain.service.quote_signer import QuoteSigner
from settlement.domain.service.submission_validator import QUOTE_FRESHNESS


class IssueQuoteHandler:

    def __init__(self, signer: QuoteSigner, clock: Clock = utc_now) -> None:
        self._signer = signer
        self._clock = clock

    def handle(self, user_id: str, request: QuoteRequest) -> QuoteDTO:
        quoted_at = self._clock()
        payload = QuotePayload(
            user_id=user_id,
            service_type=request.service_type,
            scheduled_start=request.scheduled_start,
            travel_minutes=request.travel_minutes,
            wait_minutes=request.wait_minutes,
            sit_and_wait=request.sit_and_wait,
            number_of_stops=request.number_of_stops,
            return_or_exchange=request.return_or_exchange,
            cash_handling=request.cash_handling,
            peak_hours=request.peak_hours,
            priority_slot=request.priority_slot,
            preferred_driver_id=request.preferred_driver_id,
            lock_to_preferred=request.lock_to_preferred,
            advance_discount_max=request.advance_discount_max,
            quoted_at=quoted_at,
        )
        return QuoteDTO(
            token=self._signer.sign(payload),
            quoted_at=format_instant(payload.quoted_at),
            expires_at=format_instant(payload.quoted_at + QUOTE_FRESHNESS),
        )
