"""Application service: Confirm Items use case.

Freezes the customer's "items as delivered" snapshot and total, then
re-evaluates the settlement lock.  Confirmation is one of the two lock
inputs, so a request with an already verified receipt locks here,
attributed to the confirming customer.
"""

from __future__ import annotations

import logging

from settlement.application.dto import ConfirmItemsResult
from settlement.domain.clock import Clock, utc_now
from settlement.domain.exceptions import EmptySnapshot, EntityNotFoundError, OrderLocked
from settlement.domain.model.order_confirmation import OrderConfirmation
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.domain.repository.receipt_verification_repository import (
    ReceiptVerificationRepository,
)
from settlement.domain.service.lock_evaluator import LockEvaluator
from settlement.domain.service.pricing import BillableTotalCalculator
from settlement.domain.service.snapshot import (
    ExplicitItemsSource,
    ReceiptLinesSource,
    SnapshotItemSpec,
    SnapshotSource,
)

logger = logging.getLogger(__name__)


class ConfirmItemsHandler:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        receipt_repo: ReceiptVerificationRepository,
        confirmation_repo: OrderConfirmationRepository,
        lock_evaluator: LockEvaluator,
        calculator: BillableTotalCalculator | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._request_repo = request_repo
        self._receipt_repo = receipt_repo
        self._confirmation_repo = confirmation_repo
        self._lock_evaluator = lock_evaluator
        self._calculator = calculator or BillableTotalCalculator()
        self._clock = clock

    def handle(
        self,
        delivery_request_id: str,
        acting_user_id: str,
        explicit_items: list[SnapshotItemSpec] | None = None,
    ) -> ConfirmItemsResult:
        """Confirm the delivered items.

        Steps:
        1. Load the request (only its owner may confirm it).
        2. Resolve the snapshot from explicit items, or else from the
           request's receipt lines; nothing in either place is an error.
        3. Freeze the billable total.
        4. Upsert the confirmation, linking the authoritative receipt
           verification if there is one.
        5. Re-evaluate the lock and apply it if both inputs now hold.
        """
        request = self._request_repo.get_by_id(delivery_request_id)
        if request is None or request.user_id != acting_user_id:
            raise EntityNotFoundError(f"Delivery request {delivery_request_id} not found")
        if request.lock.is_locked:
            raise OrderLocked(
                f"Delivery request {delivery_request_id} is locked; "
                f"its confirmed items can no longer change"
            )

        source: SnapshotSource
        if explicit_items is not None:
            source = ExplicitItemsSource(explicit_items)
        else:
            source = ReceiptLinesSource(request.receipt_items)
        snapshot = source.items()
        if not snapshot:
            raise EmptySnapshot(
                "No source items found to confirm. Please upload or add items first."
            )

        total = self._calculator.total_for(request)
        latest = self._receipt_repo.latest_for(delivery_request_id)
        now = self._clock()

        confirmation = self._confirmation_repo.get_by_delivery_request_id(
            delivery_request_id
        )
        if confirmation is None:
            confirmation = OrderConfirmation(
                id=None,
                delivery_request_id=delivery_request_id,
                user_id=acting_user_id,
                created_at=now,
            )
        confirmation.record_confirmation(
            user_id=acting_user_id,
            items=snapshot,
            total=total,
            verification_id=latest.id if latest is not None else None,
            at=now,
        )
        self._confirmation_repo.save(confirmation)
        logger.info(
            "Confirmed %d item(s) on delivery request %s, total %s",
            len(snapshot),
            delivery_request_id,
            total,
        )

        self._lock_evaluator.lock_if_due(delivery_request_id, acting_user_id)
        evaluation = self._lock_evaluator.evaluate(delivery_request_id)

        return ConfirmItemsResult(
            confirmation_id=confirmation.id,  # type: ignore[arg-type]
            item_count=len(snapshot),
            total_snapshot=total.to_decimal_string(),
            locked=evaluation.is_locked,
        )
