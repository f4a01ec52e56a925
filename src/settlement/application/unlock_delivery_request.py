"""Application service: Unlock Delivery Request use case (admin)."""

from __future__ import annotations

from settlement.domain.exceptions import ValidationError
from settlement.domain.service.lock_evaluator import LockEvaluator

MAX_UNLOCK_REASON_LENGTH = 500


class UnlockDeliveryRequestHandler:

    def __init__(self, lock_evaluator: LockEvaluator) -> None:
        self._lock_evaluator = lock_evaluator

    def handle(self, delivery_request_id: str, admin_id: str, reason: str) -> None:
        """Lift the lock so refunds flow without review again.

        A reason is mandatory; it is stored on the request and in the
        audit entry.
        """
        cleaned = (reason or "").strip()
        if not cleaned:
            raise ValidationError("An unlock reason is required")
        if len(cleaned) > MAX_UNLOCK_REASON_LENGTH:
            raise ValidationError(
                f"Unlock reason exceeds {MAX_UNLOCK_REASON_LENGTH} characters"
            )
        self._lock_evaluator.remove_lock(delivery_request_id, admin_id, cleaned)
