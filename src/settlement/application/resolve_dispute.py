"""Application service: Resolve Dispute use case (admin).

APPROVED and DENIED are final; NEEDS_INFO sends the dispute back to the
customer and counts as "not yet resolved".
"""

from __future__ import annotations

import logging

from settlement.application.dto import ResolutionResult
from settlement.domain.clock import Clock, format_instant, utc_now
from settlement.domain.exceptions import (
    EntityNotFoundError,
    NoDisputedItems,
    ValidationError,
)
from settlement.domain.model.order_confirmation import Resolution
from settlement.domain.model.value_objects import Money
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)

logger = logging.getLogger(__name__)

MAX_RESOLUTION_NOTES_LENGTH = 5000


class ResolveDisputeHandler:

    def __init__(
        self,
        confirmation_repo: OrderConfirmationRepository,
        clock: Clock = utc_now,
    ) -> None:
        self._confirmation_repo = confirmation_repo
        self._clock = clock

    def handle(
        self,
        confirmation_id: str,
        admin_id: str,
        resolution: Resolution,
        notes: str | None = None,
        refund_amount: str | None = None,
    ) -> ResolutionResult:
        """Resolve a dispute.

        Args:
            refund_amount: Only used for APPROVED.  When omitted, the
                snapshot value of the disputed quantities is refunded.

        Raises:
            EntityNotFoundError: unknown confirmation.
            NoDisputedItems: APPROVED/DENIED on a dispute naming nothing.
            ValidationError: refund negative or above the confirmed total.
            InvalidDisputeTransition: the dispute is already resolved.
        """
        confirmation = self._confirmation_repo.get_by_id(confirmation_id)
        if confirmation is None:
            raise EntityNotFoundError(f"Order confirmation {confirmation_id} not found")

        if not confirmation.disputed_items and resolution is not Resolution.NEEDS_INFO:
            raise NoDisputedItems("Cannot resolve dispute without disputed items")

        cleaned_notes = (notes or "").strip() or None
        if cleaned_notes is not None and len(cleaned_notes) > MAX_RESOLUTION_NOTES_LENGTH:
            raise ValidationError(
                f"Resolution notes exceed {MAX_RESOLUTION_NOTES_LENGTH} characters"
            )

        refund: Money | None = None
        if resolution is Resolution.APPROVED:
            if refund_amount is None:
                refund = confirmation.disputed_value()
            else:
                refund = Money.of(refund_amount).quantized()
            total = confirmation.total_snapshot
            if total is not None and refund > total:
                raise ValidationError(
                    f"Refund {refund} exceeds the confirmed total {total}"
                )

        confirmation.resolve(
            resolution=resolution,
            admin_id=admin_id,
            notes=cleaned_notes,
            refund_amount=refund,
            at=self._clock(),
        )
        self._confirmation_repo.save(confirmation)
        logger.info(
            "Dispute %s resolved as %s by %s",
            confirmation_id,
            confirmation.dispute_status.value,  # type: ignore[union-attr]
            admin_id,
        )

        return ResolutionResult(
            confirmation_id=confirmation.id,  # type: ignore[arg-type]
            dispute_status=confirmation.dispute_status.value,  # type: ignore[union-attr]
            refund_amount=confirmation.refund_amount,
            resolved_at=(
                format_instant(confirmation.resolved_at)
                if confirmation.resolved_at
                else None
            ),
            resolved_by_user_id=confirmation.resolved_by_user_id,
        )
