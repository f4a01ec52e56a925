"""Application service: Submit Delivery Request use case.

Validates the submission against its quote token (if any) and creates
the delivery request with the quote's locked-in priority and
preferred-driver settings.
"""

from __future__ import annotations

import logging

from settlement.application.dto import DeliveryRequestDTO
from settlement.domain.clock import Clock, format_instant, utc_now
from settlement.domain.exceptions import IntegrityError
from settlement.domain.model.delivery_request import DeliveryRequest
from settlement.domain.model.submission import DeliverySubmission
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.service.submission_validator import SubmissionValidator

logger = logging.getLogger(__name__)


class SubmitDeliveryRequestHandler:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        validator: SubmissionValidator,
        clock: Clock = utc_now,
    ) -> None:
        self._request_repo = request_repo
        self._validator = validator
        self._clock = clock

    def handle(
        self,
        submission: DeliverySubmission,
        quote_token: str | None = None,
    ) -> DeliveryRequestDTO:
        try:
            decision = self._validator.validate(submission, quote_token, self._clock())
        except IntegrityError as exc:
            logger.warning(
                "Rejected submission from user %s: %s", submission.user_id, exc
            )
            raise

        request = DeliveryRequest.create(
            user_id=submission.user_id,
            service_type=submission.service_type,
            pickup_address=submission.pickup_address,
            dropoff_address=submission.dropoff_address,
            scheduled_start=submission.scheduled_start,
            travel_minutes=submission.travel_minutes,
            wait_minutes=submission.wait_minutes,
            sit_and_wait=submission.sit_and_wait,
            number_of_stops=submission.number_of_stops,
            return_or_exchange=submission.return_or_exchange,
            cash_handling=submission.cash_handling,
            peak_hours=submission.peak_hours,
            priority_slot=decision.priority_slot,
            preferred_driver_id=decision.preferred_driver_id,
            lock_to_preferred=decision.lock_to_preferred,
            advance_discount_max=decision.advance_discount_max,
            delivery_fee=submission.delivery_fee,
            discount=submission.discount,
            created_at=self._clock(),
        )
        self._request_repo.save(request)

        return DeliveryRequestDTO(
            id=request.id,  # type: ignore[arg-type]
            user_id=request.user_id,
            service_type=request.service_type.value,
            scheduled_start=format_instant(request.scheduled_start),
            priority_slot=request.priority_slot,
            preferred_driver_id=request.preferred_driver_id,
            lock_to_preferred=request.lock_to_preferred,
            quoted=decision.quote is not None,
        )
