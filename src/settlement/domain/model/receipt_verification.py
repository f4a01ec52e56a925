"""ReceiptVerification: one verification outcome per uploaded receipt image."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from settlement.domain.clock import utc_now
from settlement.domain.model.value_objects import Money


class VerificationStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    FLAGGED = "FLAGGED"
    REJECTED = "REJECTED"

    @property
    def counts_as_verified(self) -> bool:
        # FLAGGED receipts passed with a reviewer note.
        return self in (VerificationStatus.APPROVED, VerificationStatus.FLAGGED)


@dataclass(frozen=True)
class ExtractedReceipt:
    """Fields read off the receipt image, when extraction produced them."""

    vendor_name: str | None = None
    subtotal: Money | None = None
    receipt_date: date | None = None
    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ReceiptVerification:
    id: str | None
    delivery_request_id: str
    content_hash: str
    status: VerificationStatus
    extracted: ExtractedReceipt = field(default_factory=ExtractedReceipt)
    created_at: datetime = field(default_factory=utc_now)
