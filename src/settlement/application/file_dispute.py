"""Application service: File Dispute use case.

Disputes are only meaningful once the order and its snapshot are frozen,
so filing requires a locked order.  Every disputed entry must name a
snapshot item and stay within its confirmed quantity.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from settlement.application.dto import DisputeResult
from settlement.domain.exceptions import (
    EntityNotFoundError,
    NoConfirmedItems,
    NotLocked,
    ValidationError,
)
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.domain.service.dispute_policy import DisputeEvidencePolicy
from settlement.domain.service.lock_evaluator import LockEvaluator
from settlement.domain.service.snapshot import DisputedItemSpec, validate_disputed_items

logger = logging.getLogger(__name__)

MAX_DISPUTE_NOTES_LENGTH = 5000
MAX_EVIDENCE_URLS = 20


def dedupe_evidence_urls(urls: list[str] | None) -> list[str]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for url in urls or []:
        cleaned = url.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _check_evidence_urls(urls: list[str]) -> None:
    if len(urls) > MAX_EVIDENCE_URLS:
        raise ValidationError(f"At most {MAX_EVIDENCE_URLS} evidence URLs are allowed")
    invalid = [
        url
        for url in urls
        if urlparse(url).scheme not in ("http", "https") or not urlparse(url).netloc
    ]
    if invalid:
        raise ValidationError("Invalid evidence URL", invalid)


class FileDisputeHandler:

    def __init__(
        self,
        request_repo: DeliveryRequestRepository,
        confirmation_repo: OrderConfirmationRepository,
        lock_evaluator: LockEvaluator,
        policy: DisputeEvidencePolicy | None = None,
    ) -> None:
        self._request_repo = request_repo
        self._confirmation_repo = confirmation_repo
        self._lock_evaluator = lock_evaluator
        self._policy = policy or DisputeEvidencePolicy()

    def handle(
        self,
        delivery_request_id: str,
        user_id: str,
        disputed_items: list[DisputedItemSpec],
        dispute_notes: str | None = None,
        evidence_urls: list[str] | None = None,
    ) -> DisputeResult:
        request = self._request_repo.get_by_id(delivery_request_id)
        if request is None or request.user_id != user_id:
            raise EntityNotFoundError(f"Delivery request {delivery_request_id} not found")

        if not self._lock_evaluator.evaluate(delivery_request_id).locked:
            raise NotLocked("Please confirm your order before disputing")

        confirmation = self._confirmation_repo.get_by_delivery_request_id(
            delivery_request_id
        )
        if confirmation is None or not confirmation.items_snapshot:
            raise NoConfirmedItems(
                "No confirmed items found. Confirm items before filing a dispute."
            )

        normalized = validate_disputed_items(confirmation.items_snapshot, disputed_items)

        notes = (dispute_notes or "").strip() or None
        if notes is not None and len(notes) > MAX_DISPUTE_NOTES_LENGTH:
            raise ValidationError(
                f"Dispute notes exceed {MAX_DISPUTE_NOTES_LENGTH} characters"
            )
        urls = dedupe_evidence_urls(evidence_urls)
        _check_evidence_urls(urls)

        status = self._policy.initial_status(confirmation.is_confirmed, normalized, urls)
        confirmation.file_dispute(status, normalized, notes, urls)
        self._confirmation_repo.save(confirmation)
        logger.info(
            "Dispute on delivery request %s filed as %s (%d item(s))",
            delivery_request_id,
            status.value,
            len(normalized),
        )

        return DisputeResult(
            confirmation_id=confirmation.id,  # type: ignore[arg-type]
            dispute_status=status.value,
            evidence_urls=urls,
        )
