"""Application service: Record Receipt Verification use case.

Stores one verification outcome per distinct receipt image.  The image
is identified by its SHA-256 content hash, which is unique across the
whole system, so one receipt can never back two orders.

Recording an outcome is one of the two lock triggers; the other is
customer confirmation (see ``ConfirmItemsHandler``).
"""

from __future__ import annotations

import hashlib
import logging

from settlement.application.dto import VerificationDTO
from settlement.domain.clock import Clock, utc_now
from settlement.domain.exceptions import (
    DuplicateReceipt,
    EntityNotFoundError,
    ValidationError,
)
from settlement.domain.model.receipt_verification import (
    ExtractedReceipt,
    ReceiptVerification,
    VerificationStatus,
)
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.receipt_verification_repository import (
    ReceiptVerificationRepository,
)
from settlement.domain.service.lock_evaluator import LockEvaluator

logger = logging.getLogger(__name__)

MAX_RECEIPT_BYTES = 2_621_440  # 2.5 MB
SYSTEM_ACTOR = "system:receipt-verification"


def content_hash(image: bytes) -> str:
    return hashlib.sha256(image).hexdigest()


class RecordReceiptVerificationHandler:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        receipt_repo: ReceiptVerificationRepository,
        lock_evaluator: LockEvaluator,
        clock: Clock = utc_now,
    ) -> None:
        self._request_repo = request_repo
        self._receipt_repo = receipt_repo
        self._lock_evaluator = lock_evaluator
        self._clock = clock

    def handle(
        self,
        delivery_request_id: str,
        image: bytes,
        status: VerificationStatus,
        extracted: ExtractedReceipt | None = None,
        actor_id: str = SYSTEM_ACTOR,
    ) -> VerificationDTO:
        """Record a verification outcome and lock the request if now due.

        Raises:
            EntityNotFoundError: unknown delivery request.
            ValidationError: empty or oversized image.
            DuplicateReceipt: this exact image was submitted before,
                for this or any other request.
        """
        if not image:
            raise ValidationError("Receipt image is empty")
        if len(image) > MAX_RECEIPT_BYTES:
            raise ValidationError(
                f"Receipt image exceeds {MAX_RECEIPT_BYTES} bytes"
            )

        request = self._request_repo.get_by_id(delivery_request_id)
        if request is None:
            raise EntityNotFoundError(f"Delivery request {delivery_request_id} not found")

        digest = content_hash(image)
        existing = self._receipt_repo.get_by_content_hash(digest)
        if existing is not None:
            logger.warning(
                "Duplicate receipt %s for request %s (first seen on request %s)",
                digest,
                delivery_request_id,
                existing.delivery_request_id,
            )
            raise DuplicateReceipt("This receipt was already submitted", [digest])

        extracted = extracted or ExtractedReceipt()
        verification = ReceiptVerification(
            id=None,
            delivery_request_id=delivery_request_id,
            content_hash=digest,
            status=status,
            extracted=extracted,
            created_at=self._clock(),
        )
        self._receipt_repo.add(verification)

        request.attach_receipt(f"sha256:{digest}", extracted.subtotal, extracted.items)
        self._request_repo.save(request)

        self._lock_evaluator.lock_if_due(delivery_request_id, actor_id)

        return VerificationDTO(
            id=verification.id,  # type: ignore[arg-type]
            delivery_request_id=delivery_request_id,
            content_hash=digest,
            status=status.value,
            locked=self._lock_evaluator.evaluate(delivery_request_id).is_locked,
        )
