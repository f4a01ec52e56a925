"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Amounts are fixed
two-decimal strings and instants are ISO-8601 UTC strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from settlement.domain.model.quote import ServiceType


@dataclass(frozen=True)
class QuoteRequest:
    """Input: the parameters a customer asks to have priced."""

    service_type: ServiceType
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


@dataclass(frozen=True)
class QuoteDTO:
    token: str
    quoted_at: str
    expires_at: str


@dataclass(frozen=True)
class DeliveryRequestDTO:
    id: str
    user_id: str
    service_type: str
    scheduled_start: str
    priority_slot: bool
    preferred_driver_id: str | None
    lock_to_preferred: bool
    quoted: bool


@dataclass(frozen=True)
class VerificationDTO:
    id: str
    delivery_request_id: str
    content_hash: str
    status: str
    locked: bool


@dataclass(frozen=True)
class ConfirmItemsResult:
    confirmation_id: str
    item_count: int
    total_snapshot: str | None
    locked: bool


@dataclass(frozen=True)
class DisputeResult:
    confirmation_id: str
    dispute_status: str
    evidence_urls: list[str]


@dataclass(frozen=True)
class ResolutionResult:
    confirmation_id: str
    dispute_status: str
    refund_amount: str | None
    resolved_at: str | None
    resolved_by_user_id: str | None


@dataclass(frozen=True)
class SnapshotLineDTO:
    item_key: str
    name: str
    quantity: int
    unit_price: str | None


@dataclass(frozen=True)
class AuditLineDTO:
    action: str
    actor_id: str
    created_at: str
    reason: str | None


@dataclass(frozen=True)
class SettlementDTO:
    """Output: everything settlement-related about one delivery request."""

    delivery_request_id: str
    locked: bool
    receipt_status: str | None
    receipt_verified: bool
    customer_confirmed: bool
    is_locked: bool
    locked_at: str | None
    lock_reason: str | None
    refund_policy: str
    confirmation_id: str | None = None
    total_snapshot: str | None = None
    items: list[SnapshotLineDTO] = field(default_factory=list)
    dispute_status: str | None = None
    refund_amount: str | None = None
    audit: list[AuditLineDTO] = field(default_factory=list)
