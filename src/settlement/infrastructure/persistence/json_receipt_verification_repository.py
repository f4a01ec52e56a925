"""JSON-file-backed implementation of ReceiptVerificationRepository."""

from __future__ import annotations

from datetime import date

from settlement.domain.clock import format_instant, parse_instant
from settlement.domain.exceptions import DuplicateReceipt
from settlement.domain.model.receipt_verification import (
    ExtractedReceipt,
    ReceiptVerification,
    VerificationStatus,
)
from settlement.domain.model.value_objects import Money
from settlement.domain.repository.receipt_verification_repository import (
    ReceiptVerificationRepository,
)
from settlement.infrastructure.persistence.json_file import JsonFileRepository, new_id


class JsonReceiptVerificationRepository(JsonFileRepository, ReceiptVerificationRepository):

    # --- ReceiptVerificationRepository interface ------------------------------

    def get_by_content_hash(self, content_hash: str) -> ReceiptVerification | None:
        for raw in self._load_raw():
            if raw["content_hash"] == content_hash:
                return self._to_domain(raw)
        return None

    def latest_for(self, delivery_request_id: str) -> ReceiptVerification | None:
        latest: ReceiptVerification | None = None
        for raw in self._load_raw():
            if raw["delivery_request_id"] != delivery_request_id:
                continue
            candidate = self._to_domain(raw)
            if latest is None or candidate.created_at >= latest.created_at:
                latest = candidate
        return latest

    def add(self, verification: ReceiptVerification) -> None:
        with self._lock:
            records = self._load_raw()
            if any(r["content_hash"] == verification.content_hash for r in records):
                raise DuplicateReceipt(
                    "This receipt was already submitted", [verification.content_hash]
                )
            if verification.id is None:
                verification.id = new_id()
            records.append(self._to_raw(verification))
            self._persist_raw(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(verification: ReceiptVerification) -> dict:
        extracted = verification.extracted
        return {
            "id": verification.id,
            "delivery_request_id": verification.delivery_request_id,
            "content_hash": verification.content_hash,
            "status": verification.status.value,
            "extracted": {
                "vendor_name": extracted.vendor_name,
                "subtotal": (
                    str(extracted.subtotal.amount) if extracted.subtotal is not None else None
                ),
                "receipt_date": (
                    extracted.receipt_date.isoformat() if extracted.receipt_date else None
                ),
                "items": extracted.items,
            },
            "created_at": format_instant(verification.created_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> ReceiptVerification:
        extracted = raw.get("extracted") or {}
        subtotal = extracted.get("subtotal")
        receipt_date = extracted.get("receipt_date")
        return ReceiptVerification(
            id=raw["id"],
            delivery_request_id=raw["delivery_request_id"],
            content_hash=raw["content_hash"],
            status=VerificationStatus(raw["status"]),
            extracted=ExtractedReceipt(
                vendor_name=extracted.get("vendor_name"),
                subtotal=Money.of(subtotal) if subtotal is not None else None,
                receipt_date=date.fromisoformat(receipt_date) if receipt_date else None,
                items=list(extracted.get("items", [])),
            ),
            created_at=parse_instant(raw["created_at"]),
        )
