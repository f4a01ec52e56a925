"""A customer's request to create a delivery, as submitted."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from settlement.domain.clock import normalize_instant
from settlement.domain.model.quote import ServiceType
from settlement.domain.model.value_objects import Money


@dataclass(frozen=True)
class DeliverySubmission:
    """Submission input.

    ``priority_slot``, ``preferred_driver_id`` and ``lock_to_preferred``
    may be left as None, meaning "use whatever the quote locked in".
    """

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
    priority_slot: bool | None = None
    preferred_driver_id: str | None = None
    lock_to_preferred: bool | None = None
    delivery_fee: Money = field(default_factory=Money.zero)
    discount: Money = field(default_factory=Money.zero)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scheduled_start", normalize_instant(self.scheduled_start))
