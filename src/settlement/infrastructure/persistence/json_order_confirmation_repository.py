"""JSON-file-backed implementation of OrderConfirmationRepository."""

from __future__ import annotations

from datetime import datetime

from settlement.domain.clock import format_instant, parse_instant
from settlement.domain.model.order_confirmation import (
    DisputedItem,
    DisputeReason,
    DisputeStatus,
    OrderConfirmation,
    SnapshotItem,
)
from settlement.domain.model.value_objects import Money, Quantity
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.infrastructure.persistence.json_file import JsonFileRepository, new_id


def _instant_or_none(raw: str | None) -> datetime | None:
    return parse_instant(raw) if raw else None


class JsonOrderConfirmationRepository(JsonFileRepository, OrderConfirmationRepository):

    # --- OrderConfirmationRepository interface --------------------------------

    def get_by_id(self, confirmation_id: str) -> OrderConfirmation | None:
        for raw in self._load_raw():
            if raw["id"] == confirmation_id:
                return self._to_domain(raw)
        return None

    def get_by_delivery_request_id(self, request_id: str) -> OrderConfirmation | None:
        for raw in self._load_raw():
            if raw["delivery_request_id"] == request_id:
                return self._to_domain(raw)
        return None

    def save(self, confirmation: OrderConfirmation) -> None:
        with self._lock:
            records = self._load_raw()
            for raw in records:
                if raw["delivery_request_id"] == confirmation.delivery_request_id:
                    confirmation.id = raw["id"]
                    break
            if confirmation.id is None:
                confirmation.id = new_id()
            self._upsert_raw(records, self._to_raw(confirmation), key="delivery_request_id")
            self._persist_raw(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(confirmation: OrderConfirmation) -> dict:
        return {
            "id": confirmation.id,
            "delivery_request_id": confirmation.delivery_request_id,
            "user_id": confirmation.user_id,
            "items_snapshot": [
                {
                    "item_key": item.item_key,
                    "name": item.name,
                    "quantity": item.quantity.value,
                    "unit_price": (
                        str(item.unit_price.amount) if item.unit_price is not None else None
                    ),
                    "notes": item.notes,
                }
                for item in confirmation.items_snapshot
            ],
            "total_snapshot": (
                str(confirmation.total_snapshot.amount)
                if confirmation.total_snapshot is not None
                else None
            ),
            "customer_confirmed": confirmation.customer_confirmed,
            "confirmed_at": (
                format_instant(confirmation.confirmed_at)
                if confirmation.confirmed_at
                else None
            ),
            "receipt_verification_id": confirmation.receipt_verification_id,
            "dispute_status": (
                confirmation.dispute_status.value if confirmation.dispute_status else None
            ),
            "disputed_items": [
                {
                    "item_key": d.item_key,
                    "name": d.name,
                    "quantity_disputed": d.quantity_disputed.value,
                    "reason": d.reason.value,
                    "details": d.details,
                }
                for d in confirmation.disputed_items
            ],
            "dispute_notes": confirmation.dispute_notes,
            "evidence_urls": confirmation.evidence_urls,
            "resolution_notes": confirmation.resolution_notes,
            "refund_amount": confirmation.refund_amount,
            "resolved_at": (
                format_instant(confirmation.resolved_at) if confirmation.resolved_at else None
            ),
            "resolved_by_user_id": confirmation.resolved_by_user_id,
            "created_at": format_instant(confirmation.created_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> OrderConfirmation:
        total = raw.get("total_snapshot")
        status = raw.get("dispute_status")
        return OrderConfirmation(
            id=raw["id"],
            delivery_request_id=raw["delivery_request_id"],
            user_id=raw["user_id"],
            items_snapshot=[
                SnapshotItem(
                    item_key=i["item_key"],
                    name=i["name"],
                    quantity=Quantity(i["quantity"]),
                    unit_price=(
                        Money.of(i["unit_price"]) if i.get("unit_price") is not None else None
                    ),
                    notes=i.get("notes"),
                )
                for i in raw.get("items_snapshot", [])
            ],
            total_snapshot=Money.of(total) if total is not None else None,
            customer_confirmed=raw.get("customer_confirmed", False),
            confirmed_at=_instant_or_none(raw.get("confirmed_at")),
            receipt_verification_id=raw.get("receipt_verification_id"),
            dispute_status=DisputeStatus(status) if status else None,
            disputed_items=[
                DisputedItem(
                    item_key=d["item_key"],
                    name=d["name"],
                    quantity_disputed=Quantity(d["quantity_disputed"]),
                    reason=DisputeReason(d["reason"]),
                    details=d.get("details"),
                )
                for d in raw.get("disputed_items", [])
            ],
            dispute_notes=raw.get("dispute_notes"),
            evidence_urls=list(raw.get("evidence_urls", [])),
            resolution_notes=raw.get("resolution_notes"),
            refund_amount=raw.get("refund_amount"),
            resolved_at=_instant_or_none(raw.get("resolved_at")),
            resolved_by_user_id=raw.get("resolved_by_user_id"),
            created_at=parse_instant(raw["created_at"]),
        )
