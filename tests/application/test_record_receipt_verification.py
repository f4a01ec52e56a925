"""Integration tests for the RecordReceiptVerification use case."""

import hashlib

import pytest

from settlement.application.record_receipt_verification import MAX_RECEIPT_BYTES
from settlement.domain.exceptions import (
    DuplicateReceipt,
    EntityNotFoundError,
    ValidationError,
)
from settlement.domain.model.receipt_verification import VerificationStatus
from settlement.domain.service.snapshot import SnapshotItemSpec
from tests.world import World


class TestRecordReceipt:

    def test_stores_verification_by_content_hash(self):
        world = World()
        r1 = world.new_request()

        dto = world.record_receipt.handle(r1, b"abc123", VerificationStatus.APPROVED)

        digest = hashlib.sha256(b"abc123").hexdigest()
        assert dto.content_hash == digest
        assert dto.locked is False
        assert world.receipts.get_by_content_hash(digest).delivery_request_id == r1

    def test_extracted_fields_copied_to_request(self):
        world = World()
        r1 = world.new_request()

        world.verify_receipt(r1, items=[{"name": "Milk", "qty": 2}], subtotal="6.50")

        request = world.requests.get_by_id(r1)
        assert request.receipt_subtotal.to_decimal_string() == "6.50"
        assert request.receipt_items == [{"name": "Milk", "qty": 2}]
        assert request.receipt_image_ref.startswith("sha256:")

    def test_locked_request_keeps_its_receipt_facts(self):
        world = World()
        r1 = world.new_request()
        world.verify_receipt(r1, subtotal="6.50")
        world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1, "6.50")])

        world.verify_receipt(r1, subtotal="99.00", status=VerificationStatus.FLAGGED)

        assert world.requests.get_by_id(r1).receipt_subtotal.to_decimal_string() == "6.50"


class TestRecordReceiptRejections:

    def test_same_image_twice_rejected(self):
        world = World()
        r1 = world.new_request()
        world.record_receipt.handle(r1, b"abc123", VerificationStatus.PENDING)

        with pytest.raises(DuplicateReceipt, match="already submitted"):
            world.record_receipt.handle(r1, b"abc123", VerificationStatus.APPROVED)

    def test_same_image_on_another_request_rejected(self):
        world = World()
        r1 = world.new_request()
        r2 = world.new_request(user_id="cust-2")
        world.record_receipt.handle(r1, b"abc123", VerificationStatus.APPROVED)

        with pytest.raises(DuplicateReceipt):
            world.record_receipt.handle(r2, b"abc123", VerificationStatus.APPROVED)
        assert world.receipts.latest_for(r2) is None

    def test_duplicate_is_logged(self, caplog):
        world = World()
        r1 = world.new_request()
        world.record_receipt.handle(r1, b"abc123", VerificationStatus.APPROVED)

        with caplog.at_level("WARNING"):
            with pytest.raises(DuplicateReceipt):
                world.record_receipt.handle(r1, b"abc123", VerificationStatus.APPROVED)
        assert "Duplicate receipt" in caplog.text

    def test_unknown_request(self):
        with pytest.raises(EntityNotFoundError):
            World().record_receipt.handle("dr-404", b"abc123", VerificationStatus.APPROVED)

    def test_empty_image(self):
        world = World()
        with pytest.raises(ValidationError, match="empty"):
            world.record_receipt.handle(world.new_request(), b"", VerificationStatus.APPROVED)

    def test_oversized_image(self):
        world = World()
        with pytest.raises(ValidationError, match="exceeds"):
            world.record_receipt.handle(
                world.new_request(), b"x" * (MAX_RECEIPT_BYTES + 1), VerificationStatus.APPROVED
            )
