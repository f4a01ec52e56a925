"""JSON-file-backed implementation of DeliveryRequestRepository."""

from __future__ import annotations

from settlement.domain.clock import format_instant, parse_instant
from settlement.domain.model.delivery_request import (
    DeliveryRequest,
    LockState,
    RefundPolicy,
)
from settlement.domain.model.quote import ServiceType
from settlement.domain.model.value_objects import Money
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.infrastructure.persistence.json_file import JsonFileRepository, new_id


class JsonDeliveryRequestRepository(JsonFileRepository, DeliveryRequestRepository):

    # --- DeliveryRequestRepository interface ----------------------------------

    def get_by_id(self, request_id: str) -> DeliveryRequest | None:
        for raw in self._load_raw():
            if raw["id"] == request_id:
                return self._to_domain(raw)
        return None

    def save(self, request: DeliveryRequest) -> None:
        with self._lock:
            records = self._load_raw()
            if request.id is None:
                request.id = new_id()

            record = self._to_raw(request)
            for raw in records:
                if raw["id"] == request.id:
                    # Lock fields only move through update_lock_if.
                    record["lock"] = raw["lock"]
                    request.lock = self._lock_to_domain(raw["lock"])
                    break
            self._upsert_raw(records, record)
            self._persist_raw(records)

    def update_lock_if(
        self,
        request_id: str,
        expected_locked: bool,
        new_state: LockState,
    ) -> bool:
        with self._lock:
            records = self._load_raw()
            for raw in records:
                if raw["id"] != request_id:
                    continue
                if raw["lock"]["is_locked"] != expected_locked:
                    return False
                raw["lock"] = self._lock_to_raw(new_state)
                self._persist_raw(records)
                return True
            return False

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _lock_to_raw(lock: LockState) -> dict:
        return {
            "is_locked": lock.is_locked,
            "locked_at": format_instant(lock.locked_at) if lock.locked_at else None,
            "lock_reason": lock.lock_reason,
            "refund_policy": lock.refund_policy.value,
        }

    @staticmethod
    def _lock_to_domain(raw: dict) -> LockState:
        return LockState(
            is_locked=raw["is_locked"],
            locked_at=parse_instant(raw["locked_at"]) if raw.get("locked_at") else None,
            lock_reason=raw.get("lock_reason"),
            refund_policy=RefundPolicy(raw["refund_policy"]),
        )

    @classmethod
    def _to_raw(cls, request: DeliveryRequest) -> dict:
        return {
            "id": request.id,
            "user_id": request.user_id,
            "service_type": request.service_type.value,
            "pickup_address": request.pickup_address,
            "dropoff_address": request.dropoff_address,
            "scheduled_start": format_instant(request.scheduled_start),
            "travel_minutes": request.travel_minutes,
            "wait_minutes": request.wait_minutes,
            "sit_and_wait": request.sit_and_wait,
            "number_of_stops": request.number_of_stops,
            "return_or_exchange": request.return_or_exchange,
            "cash_handling": request.cash_handling,
            "peak_hours": request.peak_hours,
            "priority_slot": request.priority_slot,
            "preferred_driver_id": request.preferred_driver_id,
            "lock_to_preferred": request.lock_to_preferred,
            "advance_discount_max": request.advance_discount_max,
            "delivery_fee": str(request.delivery_fee.amount),
            "discount": str(request.discount.amount),
            "receipt_subtotal": (
                str(request.receipt_subtotal.amount)
                if request.receipt_subtotal is not None
                else None
            ),
            "receipt_items": request.receipt_items,
            "receipt_image_ref": request.receipt_image_ref,
            "lock": cls._lock_to_raw(request.lock),
            "created_at": format_instant(request.created_at),
        }

    @classmethod
    def _to_domain(cls, raw: dict) -> DeliveryRequest:
        subtotal = raw.get("receipt_subtotal")
        return DeliveryRequest(
            id=raw["id"],
            user_id=raw["user_id"],
            service_type=ServiceType(raw["service_type"]),
            pickup_address=raw["pickup_address"],
            dropoff_address=raw["dropoff_address"],
            scheduled_start=parse_instant(raw["scheduled_start"]),
            travel_minutes=raw.get("travel_minutes", 0),
            wait_minutes=raw.get("wait_minutes", 0),
            sit_and_wait=raw.get("sit_and_wait", False),
            number_of_stops=raw.get("number_of_stops", 1),
            return_or_exchange=raw.get("return_or_exchange", False),
            cash_handling=raw.get("cash_handling", False),
            peak_hours=raw.get("peak_hours", False),
            priority_slot=raw.get("priority_slot", False),
            preferred_driver_id=raw.get("preferred_driver_id"),
            lock_to_preferred=raw.get("lock_to_preferred", False),
            advance_discount_max=raw.get("advance_discount_max", 0),
            delivery_fee=Money.of(raw.get("delivery_fee", "0")),
            discount=Money.of(raw.get("discount", "0")),
            receipt_subtotal=Money.of(subtotal) if subtotal is not None else None,
            receipt_items=list(raw.get("receipt_items", [])),
            receipt_image_ref=raw.get("receipt_image_ref"),
            lock=cls._lock_to_domain(raw["lock"]),
            created_at=parse_instant(raw["created_at"]),
        )
