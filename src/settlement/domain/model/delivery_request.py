"""DeliveryRequest aggregate and its settlement lock.

The four lock fields (``is_locked``, ``locked_at``, ``lock_reason``,
``refund_policy``) are grouped into the immutable ``LockState`` so that
every transition replaces them as a unit and the audit trail can capture
the complete before/after picture.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from settlement.domain.clock import format_instant, utc_now
from settlement.domain.exceptions import ValidationError
from settlement.domain.model.quote import ServiceType
from settlement.domain.model.value_objects import Money

DEFAULT_LOCK_REASON = "RECEIPT+CONFIRMATION"


class RefundPolicy(Enum):
    AUTO_ALLOWED = "AUTO_ALLOWED"
    LOCKED_REQUIRES_REVIEW = "LOCKED_REQUIRES_REVIEW"


@dataclass(frozen=True)
class LockState:
    is_locked: bool = False
    locked_at: datetime | None = None
    lock_reason: str | None = None
    refund_policy: RefundPolicy = RefundPolicy.AUTO_ALLOWED

    @staticmethod
    def locked(at: datetime, reason: str) -> LockState:
        return LockState(
            is_locked=True,
            locked_at=at,
            lock_reason=reason,
            refund_policy=RefundPolicy.LOCKED_REQUIRES_REVIEW,
        )

    @staticmethod
    def unlocked(reason: str) -> LockState:
        return LockState(
            is_locked=False,
            locked_at=None,
            lock_reason=reason,
            refund_policy=RefundPolicy.AUTO_ALLOWED,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "isLocked": self.is_locked,
            "lockedAt": format_instant(self.locked_at) if self.locked_at else None,
            "lockReason": self.lock_reason,
            "refundPolicy": self.refund_policy.value,
        }


@dataclass
class DeliveryRequest:
    """An order owned by exactly one customer.

    Use ``DeliveryRequest.create()`` for new requests.  The ``__init__``
    stays simple so repositories can reconstitute persisted requests
    without re-validating.
    """

    id: str | None
    user_id: str
    service_type: ServiceType
    pickup_address: str
    dropoff_address: str
    scheduled_start: datetime
    travel_minutes: int = 0
    wait_minutes: int = 0
    sit_and_wait: bool = False
    number_of_stops: int = 1
    return_or_exchange: bool = False
    cash_handling: bool = False
    peak_hours: bool = False
    priority_slot: bool = False
    preferred_driver_id: str | None = None
    lock_to_preferred: bool = False
    advance_discount_max: int = 0
    delivery_fee: Money = field(default_factory=Money.zero)
    discount: Money = field(default_factory=Money.zero)
    receipt_subtotal: Money | None = None
    receipt_items: list[dict[str, Any]] = field(default_factory=list)
    receipt_image_ref: str | None = None
    lock: LockState = field(default_factory=LockState)
    created_at: datetime = field(default_factory=utc_now)

    # --- Factory (used for NEW requests only) ---------------------------------

    @staticmethod
    def create(
        user_id: str,
        service_type: ServiceType,
        pickup_address: str,
        dropoff_address: str,
        scheduled_start: datetime,
        **fields: Any,
    ) -> DeliveryRequest:
        if not user_id:
            raise ValidationError("Delivery request must belong to a user")
        if not pickup_address or not pickup_address.strip():
            raise ValidationError("Pickup address is required")
        if not dropoff_address or not dropoff_address.strip():
            raise ValidationError("Dropoff address is required")
        return DeliveryRequest(
            id=None,
            user_id=user_id,
            service_type=service_type,
            pickup_address=pickup_address.strip(),
            dropoff_address=dropoff_address.strip(),
            scheduled_start=scheduled_start,
            **fields,
        )

    # --- Receipt --------------------------------------------------------------

    def attach_receipt(
        self,
        image_ref: str,
        subtotal: Money | None,
        items: list[dict[str, Any]],
    ) -> None:
        """Record extracted receipt facts.

        Once locked, the financial facts are settled and stay untouched.
        """
        if self.lock.is_locked:
            return
        self.receipt_image_ref = image_ref
        if subtotal is not None:
            self.receipt_subtotal = subtotal
        if items:
            self.receipt_items = [dict(item) for item in items]
