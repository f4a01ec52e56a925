"""OrderConfirmation: the frozen "items as delivered" snapshot and its dispute.

At most one confirmation exists per delivery request.  The snapshot is
written by customer confirmation only; dispute filing and resolution
touch the dispute fields and never the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from settlement.domain.clock import utc_now
from settlement.domain.exceptions import InvalidDisputeTransition
from settlement.domain.model.value_objects import Money, Quantity


class DisputeStatus(Enum):
    OPEN = "OPEN"
    NEEDS_INFO = "NEEDS_INFO"
    RESOLVED_APPROVED = "RESOLVED_APPROVED"
    RESOLVED_DENIED = "RESOLVED_DENIED"

    @property
    def is_resolved(self) -> bool:
        return self in (DisputeStatus.RESOLVED_APPROVED, DisputeStatus.RESOLVED_DENIED)


class DisputeReason(Enum):
    MISSING = "MISSING"
    WRONG_ITEM = "WRONG_ITEM"
    BAD_QUALITY = "BAD_QUALITY"
    DAMAGED = "DAMAGED"


class Resolution(Enum):
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    NEEDS_INFO = "NEEDS_INFO"

    @property
    def dispute_status(self) -> DisputeStatus:
        return {
            Resolution.APPROVED: DisputeStatus.RESOLVED_APPROVED,
            Resolution.DENIED: DisputeStatus.RESOLVED_DENIED,
            Resolution.NEEDS_INFO: DisputeStatus.NEEDS_INFO,
        }[self]


# Customer filing (re-filing overwrites the dispute while it is still open).
_FILING_TRANSITIONS: dict[DisputeStatus | None, set[DisputeStatus]] = {
    None: {DisputeStatus.OPEN, DisputeStatus.NEEDS_INFO},
    DisputeStatus.OPEN: {DisputeStatus.OPEN, DisputeStatus.NEEDS_INFO},
    DisputeStatus.NEEDS_INFO: {DisputeStatus.OPEN, DisputeStatus.NEEDS_INFO},
}

# Admin resolution.  RESOLVED_* states are terminal.
_RESOLUTION_TRANSITIONS: dict[DisputeStatus | None, set[DisputeStatus]] = {
    None: {DisputeStatus.NEEDS_INFO},
    DisputeStatus.OPEN: {
        DisputeStatus.NEEDS_INFO,
        DisputeStatus.RESOLVED_APPROVED,
        DisputeStatus.RESOLVED_DENIED,
    },
    DisputeStatus.NEEDS_INFO: {
        DisputeStatus.NEEDS_INFO,
        DisputeStatus.RESOLVED_APPROVED,
        DisputeStatus.RESOLVED_DENIED,
    },
}


@dataclass(frozen=True)
class SnapshotItem:
    item_key: str
    name: str
    quantity: Quantity
    unit_price: Money | None = None
    notes: str | None = None

    @property
    def line_total(self) -> Money:
        if self.unit_price is None:
            return Money.zero()
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class DisputedItem:
    """A snapshot item, the quantity the customer contests, and why."""

    item_key: str
    name: str
    quantity_disputed: Quantity
    reason: DisputeReason
    details: str | None = None


@dataclass
class OrderConfirmation:
    id: str | None
    delivery_request_id: str
    user_id: str
    items_snapshot: list[SnapshotItem] = field(default_factory=list)
    total_snapshot: Money | None = None
    customer_confirmed: bool = False
    confirmed_at: datetime | None = None
    receipt_verification_id: str | None = None
    dispute_status: DisputeStatus | None = None
    disputed_items: list[DisputedItem] = field(default_factory=list)
    dispute_notes: str | None = None
    evidence_urls: list[str] = field(default_factory=list)
    resolution_notes: str | None = None
    refund_amount: str | None = None  # fixed two-decimal string, e.g. "14.00"
    resolved_at: datetime | None = None
    resolved_by_user_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    # --- Queries --------------------------------------------------------------

    @property
    def is_confirmed(self) -> bool:
        """Genuinely confirmed: the flag *and* a confirmation instant."""
        return self.customer_confirmed and self.confirmed_at is not None

    def snapshot_item(self, item_key: str) -> SnapshotItem | None:
        for item in self.items_snapshot:
            if item.item_key == item_key:
                return item
        return None

    def disputed_value(self) -> Money:
        """Snapshot value of every disputed quantity (unpriced items count zero)."""
        total = Money.zero()
        for disputed in self.disputed_items:
            item = self.snapshot_item(disputed.item_key)
            if item is None or item.unit_price is None:
                continue
            total = total + item.unit_price * disputed.quantity_disputed.value
        return total.quantized()

    # --- State transitions ----------------------------------------------------

    def record_confirmation(
        self,
        user_id: str,
        items: list[SnapshotItem],
        total: Money | None,
        verification_id: str | None,
        at: datetime,
    ) -> None:
        """Overwrite the snapshot and confirmation instant."""
        self.user_id = user_id
        self.items_snapshot = list(items)
        self.total_snapshot = total
        self.customer_confirmed = True
        self.confirmed_at = at
        if verification_id is not None:
            self.receipt_verification_id = verification_id

    def file_dispute(
        self,
        status: DisputeStatus,
        items: list[DisputedItem],
        notes: str | None,
        evidence_urls: list[str],
    ) -> None:
        self._transition(status, _FILING_TRANSITIONS)
        self.disputed_items = list(items)
        self.dispute_notes = notes
        self.evidence_urls = list(evidence_urls)

    def resolve(
        self,
        resolution: Resolution,
        admin_id: str,
        notes: str | None,
        refund_amount: Money | None,
        at: datetime,
    ) -> None:
        """Apply an admin resolution.

        A NEEDS_INFO resolution is explicitly "not yet resolved", so it
        clears the resolver, the resolution instant and any refund.
        """
        self._transition(resolution.dispute_status, _RESOLUTION_TRANSITIONS)
        self.resolution_notes = notes
        if resolution is Resolution.APPROVED:
            self.refund_amount = (refund_amount or Money.zero()).to_decimal_string()
        else:
            self.refund_amount = None
        if resolution is Resolution.NEEDS_INFO:
            self.resolved_at = None
            self.resolved_by_user_id = None
        else:
            self.resolved_at = at
            self.resolved_by_user_id = admin_id

    # --- Internal helpers -----------------------------------------------------

    def _transition(
        self,
        target: DisputeStatus,
        table: dict[DisputeStatus | None, set[DisputeStatus]],
    ) -> None:
        allowed = table.get(self.dispute_status, set())
        if target not in allowed:
            current = self.dispute_status.value if self.dispute_status else "none"
            raise InvalidDisputeTransition(
                f"Cannot move dispute from {current} to {target.value}"
            )
        self.dispute_status = target
