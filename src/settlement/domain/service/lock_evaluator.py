"""Domain service: the settlement lock.

``locked = receipt_verified AND customer_confirmed``.  There is no other
way to lock and no way to unlock except the administrative
``remove_lock``.

Lock writes are conditional on the stored ``is_locked`` flag (see
``DeliveryRequestRepository.update_lock_if``), so two triggers racing to
lock the same request produce exactly one LOCK transition and one audit
entry; the loser simply observes "already locked".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from settlement.domain.clock import Clock, utc_now
from settlement.domain.exceptions import EntityNotFoundError, NotLocked
from settlement.domain.model.audit import AuditAction
from settlement.domain.model.delivery_request import (
    DEFAULT_LOCK_REASON,
    DeliveryRequest,
    LockState,
    RefundPolicy,
)
from settlement.domain.model.receipt_verification import VerificationStatus
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.domain.repository.receipt_verification_repository import (
    ReceiptVerificationRepository,
)
from settlement.domain.service.audit_trail import AuditTrail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockEvaluation:
    """Derived lock inputs and outcome, plus the stored lock fields."""

    locked: bool
    receipt_status: VerificationStatus | None
    receipt_verified: bool
    customer_confirmed: bool
    is_locked: bool
    locked_at: datetime | None
    lock_reason: str | None
    refund_policy: RefundPolicy


def refund_allowed_without_review(
    evaluation: LockEvaluation,
    disputed_items: Sequence[object] | None = None,
) -> bool:
    """Billing's refund gate.

    Unlocked orders refund through the normal flow; locked orders only
    when the refund is backed by at least one disputed item.
    """
    if not evaluation.locked:
        return True
    return bool(disputed_items)


class LockEvaluator:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        receipt_repo: ReceiptVerificationRepository,
        confirmation_repo: OrderConfirmationRepository,
        audit_trail: AuditTrail,
        clock: Clock = utc_now,
    ) -> None:
        self._request_repo = request_repo
        self._receipt_repo = receipt_repo
        self._confirmation_repo = confirmation_repo
        self._audit_trail = audit_trail
        self._clock = clock

    def evaluate(self, delivery_request_id: str) -> LockEvaluation:
        """Derive the lock from its two inputs.  Pure read; idempotent."""
        request = self._require(delivery_request_id)

        latest = self._receipt_repo.latest_for(delivery_request_id)
        receipt_status = latest.status if latest is not None else None
        receipt_verified = receipt_status is not None and receipt_status.counts_as_verified

        confirmation = self._confirmation_repo.get_by_delivery_request_id(delivery_request_id)
        customer_confirmed = confirmation is not None and confirmation.is_confirmed

        return LockEvaluation(
            locked=receipt_verified and customer_confirmed,
            receipt_status=receipt_status,
            receipt_verified=receipt_verified,
            customer_confirmed=customer_confirmed,
            is_locked=request.lock.is_locked,
            locked_at=request.lock.locked_at,
            lock_reason=request.lock.lock_reason,
            refund_policy=request.lock.refund_policy,
        )

    def lock_if_due(self, delivery_request_id: str, actor_id: str) -> bool:
        """Re-evaluate and apply the lock when both inputs hold.

        Returns True only if this call performed the LOCK transition.
        """
        if not self.evaluate(delivery_request_id).locked:
            return False
        return self.apply_lock(delivery_request_id, actor_id)

    def apply_lock(
        self,
        delivery_request_id: str,
        actor_id: str,
        reason: str = DEFAULT_LOCK_REASON,
    ) -> bool:
        """Lock the request and audit the transition.

        Already-locked requests are left untouched and produce no audit
        entry; the return value says whether a transition happened.
        """
        request = self._require(delivery_request_id)
        before = request.lock
        if before.is_locked:
            return False

        after = LockState.locked(self._clock(), reason)
        if not self._request_repo.update_lock_if(delivery_request_id, False, after):
            logger.info("Delivery request %s was locked concurrently", delivery_request_id)
            return False

        self._audit_trail.record_transition(
            actor_id,
            delivery_request_id,
            AuditAction.LOCK,
            before,
            after,
            at=after.locked_at,  # type: ignore[arg-type]
            details={"reason": reason},
        )
        logger.info("Locked delivery request %s (%s)", delivery_request_id, reason)
        return True

    def remove_lock(self, delivery_request_id: str, actor_id: str, reason: str) -> None:
        """Administrative unlock.

        Raises NotLocked when there is nothing to unlock, so every unlock
        that succeeds corresponds to a real, audited transition.
        """
        request = self._require(delivery_request_id)
        before = request.lock
        if not before.is_locked:
            raise NotLocked(f"Delivery request {delivery_request_id} is not locked")

        after = LockState.unlocked(reason)
        if not self._request_repo.update_lock_if(delivery_request_id, True, after):
            raise NotLocked(f"Delivery request {delivery_request_id} is not locked")

        self._audit_trail.record_transition(
            actor_id,
            delivery_request_id,
            AuditAction.UNLOCK,
            before,
            after,
            at=self._clock(),
            details={"reason": reason},
        )
        logger.info(
            "Unlocked delivery request %s by %s (%s)", delivery_request_id, actor_id, reason
        )

    def _require(self, delivery_request_id: str) -> DeliveryRequest:
        request = self._request_repo.get_by_id(delivery_request_id)
        if request is None:
            raise EntityNotFoundError(f"Delivery request {delivery_request_id} not found")
        return request
