"""Quote payload: the exact parameters a price was computed from.

Never persisted.  It only exists inside a signed token handed to the
client (see ``QuoteSigner``), so the schema here is also the wire schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from settlement.domain.clock import format_instant, normalize_instant, parse_instant
from settlement.domain.exceptions import SchemaViolation, ValidationError

QUOTE_SCHEMA_VERSION = 1


class ServiceType(Enum):
    FOOD = "FOOD"
    STORE = "STORE"
    FRAGILE = "FRAGILE"
    CONCIERGE = "CONCIERGE"
    RIDE = "RIDE"


# Order is irrelevant on the wire (canonical JSON sorts keys).
_WIRE_KEYS: tuple[str, ...] = (
    "v",
    "userId",
    "serviceType",
    "scheduledStart",
    "travelMinutes",
    "waitMinutes",
    "sitAndWait",
    "numberOfStops",
    "returnOrExchange",
    "cashHandling",
    "peakHours",
    "prioritySlot",
    "preferredDriverId",
    "lockToPreferred",
    "advanceDiscountMax",
    "quotedAt",
)

# The fields a submission must reproduce exactly.
PRICED_FIELDS: tuple[str, ...] = (
    "service_type",
    "scheduled_start",
    "travel_minutes",
    "wait_minutes",
    "sit_and_wait",
    "number_of_stops",
    "return_or_exchange",
    "cash_handling",
    "peak_hours",
    "priority_slot",
    "preferred_driver_id",
    "lock_to_preferred",
)


@dataclass(frozen=True)
class QuotePayload:
    """Signed quote contents.

    Instants are normalised to UTC milliseconds on construction so that
    ``from_wire(to_wire(p)) == p`` always holds.
    """

    user_id: str
    service_type: ServiceType
    scheduled_start: datetime
    travel_minutes: int
    wait_minutes: int
    sit_and_wait: bool
    number_of_stops: int
    return_or_exchange: bool
    cash_handling: bool
    peak_hours: bool
    priority_slot: bool
    preferred_driver_id: str | None
    lock_to_preferred: bool
    advance_discount_max: int
    quoted_at: datetime
    version: int = QUOTE_SCHEMA_VERSION

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not _is_int(self.version) or self.version != QUOTE_SCHEMA_VERSION:
            errors.append(f"v: unsupported version {self.version!r}")
        if not isinstance(self.user_id, str) or not self.user_id:
            errors.append("userId: must be a non-empty string")
        if not isinstance(self.service_type, ServiceType):
            errors.append(f"serviceType: invalid value {self.service_type!r}")

        for name in ("travel_minutes", "wait_minutes", "advance_discount_max"):
            if not _is_int(getattr(self, name)) or getattr(self, name) < 0:
                errors.append(f"{name}: must be a non-negative integer")
        if not _is_int(self.number_of_stops) or self.number_of_stops < 1:
            errors.append("number_of_stops: must be a positive integer")

        for name in (
            "sit_and_wait",
            "return_or_exchange",
            "cash_handling",
            "peak_hours",
            "priority_slot",
            "lock_to_preferred",
        ):
            if not isinstance(getattr(self, name), bool):
                errors.append(f"{name}: must be a boolean")

        if self.preferred_driver_id is not None and (
            not isinstance(self.preferred_driver_id, str) or not self.preferred_driver_id
        ):
            errors.append("preferred_driver_id: must be null or a non-empty string")

        for name in ("scheduled_start", "quoted_at"):
            value = getattr(self, name)
            if not isinstance(value, datetime):
                errors.append(f"{name}: must be a datetime")
                continue
            try:
                object.__setattr__(self, name, normalize_instant(value))
            except ValidationError:
                errors.append(f"{name}: must be timezone-aware")

        if errors:
            raise SchemaViolation("Quote payload failed schema validation", errors)

    # --- Wire format ----------------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        return {
            "v": self.version,
            "userId": self.user_id,
            "serviceType": self.service_type.value,
            "scheduledStart": format_instant(self.scheduled_start),
            "travelMinutes": self.travel_minutes,
            "waitMinutes": self.wait_minutes,
            "sitAndWait": self.sit_and_wait,
            "numberOfStops": self.number_of_stops,
            "returnOrExchange": self.return_or_exchange,
            "cashHandling": self.cash_handling,
            "peakHours": self.peak_hours,
            "prioritySlot": self.priority_slot,
            "preferredDriverId": self.preferred_driver_id,
            "lockToPreferred": self.lock_to_preferred,
            "advanceDiscountMax": self.advance_discount_max,
            "quotedAt": format_instant(self.quoted_at),
        }

    @staticmethod
    def from_wire(raw: Any) -> QuotePayload:
        """Strictly parse a decoded token body.

        Raises SchemaViolation listing every missing, unknown or
        out-of-range field.
        """
        if not isinstance(raw, dict):
            raise SchemaViolation("Quote payload must be a JSON object")

        errors: list[str] = []
        missing = [key for key in _WIRE_KEYS if key not in raw]
        unknown = [key for key in raw if key not in _WIRE_KEYS]
        errors.extend(f"{key}: missing" for key in missing)
        errors.extend(f"{key}: unknown field" for key in unknown)
        if errors:
            raise SchemaViolation("Quote payload failed schema validation", errors)

        try:
            service_type = ServiceType(raw["serviceType"])
        except ValueError:
            errors.append(f"serviceType: invalid value {raw['serviceType']!r}")
            service_type = None

        instants: dict[str, datetime | None] = {}
        for key in ("scheduledStart", "quotedAt"):
            try:
                instants[key] = parse_instant(raw[key])
            except ValidationError:
                errors.append(f"{key}: invalid timestamp")
                instants[key] = None

        if errors:
            raise SchemaViolation("Quote payload failed schema validation", errors)

        return QuotePayload(
            user_id=raw["userId"],
            service_type=service_type,  # type: ignore[arg-type]
            scheduled_start=instants["scheduledStart"],  # type: ignore[arg-type]
            travel_minutes=raw["travelMinutes"],
            wait_minutes=raw["waitMinutes"],
            sit_and_wait=raw["sitAndWait"],
            number_of_stops=raw["numberOfStops"],
            return_or_exchange=raw["returnOrExchange"],
            cash_handling=raw["cashHandling"],
            peak_hours=raw["peakHours"],
            priority_slot=raw["prioritySlot"],
            preferred_driver_id=raw["preferredDriverId"],
            lock_to_preferred=raw["lockToPreferred"],
            advance_discount_max=raw["advanceDiscountMax"],
            quoted_at=instants["quotedAt"],  # type: ignore[arg-type]
            version=raw["v"],
        )


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
