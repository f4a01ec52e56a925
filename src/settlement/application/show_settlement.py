"""Application service: Show Settlement use case (query)."""

from __future__ import annotations

from settlement.application.dto import AuditLineDTO, SettlementDTO, SnapshotLineDTO
from settlement.domain.clock import format_instant
from settlement.domain.exceptions import EntityNotFoundError
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.domain.service.audit_trail import AuditTrail
from settlement.domain.service.lock_evaluator import LockEvaluator


class ShowSettlementHandler:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        confirmation_repo: OrderConfirmationRepository,
        lock_evaluator: LockEvaluator,
        audit_trail: AuditTrail,
    ) -> None:
        self._request_repo = request_repo
        self._confirmation_repo = confirmation_repo
        self._lock_evaluator = lock_evaluator
        self._audit_trail = audit_trail

    def handle(
        self,
        delivery_request_id: str,
        viewer_id: str | None = None,
    ) -> SettlementDTO:
        """Settlement view of one request.

        With ``viewer_id`` set, only that user's own requests are visible.
        """
        request = self._request_repo.get_by_id(delivery_request_id)
        if request is None or (viewer_id is not None and request.user_id != viewer_id):
            raise EntityNotFoundError(f"Delivery request {delivery_request_id} not found")

        evaluation = self._lock_evaluator.evaluate(delivery_request_id)
        confirmation = self._confirmation_repo.get_by_delivery_request_id(
            delivery_request_id
        )

        audit = [
            AuditLineDTO(
                action=entry.action.value,
                actor_id=entry.actor_id,
                created_at=format_instant(entry.created_at),
                reason=entry.details.get("reason"),
            )
            for entry in self._audit_trail.history(delivery_request_id)
        ]

        items: list[SnapshotLineDTO] = []
        confirmation_id = total = dispute_status = refund = None
        if confirmation is not None:
            confirmation_id = confirmation.id
            if confirmation.total_snapshot is not None:
                total = confirmation.total_snapshot.to_decimal_string()
            if confirmation.dispute_status is not None:
                dispute_status = confirmation.dispute_status.value
            refund = confirmation.refund_amount
            items = [
                SnapshotLineDTO(
                    item_key=item.item_key,
                    name=item.name,
                    quantity=item.quantity.value,
                    unit_price=(
                        item.unit_price.to_decimal_string()
                        if item.unit_price is not None
                        else None
                    ),
                )
                for item in confirmation.items_snapshot
            ]

        return SettlementDTO(
            delivery_request_id=delivery_request_id,
            locked=evaluation.locked,
            receipt_status=(
                evaluation.receipt_status.value if evaluation.receipt_status else None
            ),
            receipt_verified=evaluation.receipt_verified,
            customer_confirmed=evaluation.customer_confirmed,
            is_locked=evaluation.is_locked,
            locked_at=(
                format_instant(evaluation.locked_at) if evaluation.locked_at else None
            ),
            lock_reason=evaluation.lock_reason,
            refund_policy=evaluation.refund_policy.value,
            confirmation_id=confirmation_id,
            total_snapshot=total,
            items=items,
            dispute_status=dispute_status,
            refund_amount=refund,
            audit=audit,
        )
