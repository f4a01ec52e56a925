"""Integration tests for the FileDispute use case."""

import pytest

from settlement.domain.exceptions import (
    EntityNotFoundError,
    InvalidDisputedItems,
    InvalidDisputeTransition,
    NotLocked,
    ValidationError,
)
from settlement.domain.model.order_confirmation import Resolution
from settlement.domain.service.snapshot import DisputedItemSpec, SnapshotItemSpec
from tests.world import World


def _setup():
    """A locked request with a two-item snapshot."""
    world = World()
    r1 = world.new_request()
    world.verify_receipt(r1, subtotal="11.00")
    world.confirm.handle(
        r1,
        "cust-1",
        [SnapshotItemSpec("Milk", 2, "3.50"), SnapshotItemSpec("Bread", 1, "4.00")],
    )
    return world, r1


class TestFileDisputeHappyPath:

    def test_quality_claim_is_open(self):
        world, r1 = _setup()
        result = world.dispute.handle(
            r1, "cust-1", [DisputedItemSpec("milk-1", 1, "BAD_QUALITY")], "sour"
        )

        assert result.dispute_status == "OPEN"
        confirmation = world.confirmations.get_by_delivery_request_id(r1)
        assert confirmation.dispute_notes == "sour"
        assert confirmation.disputed_items[0].item_key == "milk-1"

    def test_missing_item_without_evidence_needs_info(self):
        world, r1 = _setup()
        result = world.dispute.handle(r1, "cust-1", [DisputedItemSpec("Bread", 1, "MISSING")])
        assert result.dispute_status == "NEEDS_INFO"

    def test_evidence_urls_deduplicated(self):
        world, r1 = _setup()
        result = world.dispute.handle(
            r1,
            "cust-1",
            [DisputedItemSpec("Bread", 1, "MISSING")],
            evidence_urls=["https://img/1 ", "https://img/1", "", "https://img/2"],
        )
        assert result.dispute_status == "OPEN"
        assert result.evidence_urls == ["https://img/1", "https://img/2"]

    def test_refiling_replaces_the_claim(self):
        world, r1 = _setup()
        world.dispute.handle(r1, "cust-1", [DisputedItemSpec("Bread", 1, "MISSING")])
        result = world.dispute.handle(
            r1,
            "cust-1",
            [DisputedItemSpec("Bread", 1, "MISSING")],
            evidence_urls=["https://img/1"],
        )
        assert result.dispute_status == "OPEN"

    def test_snapshot_untouched_by_dispute(self):
        world, r1 = _setup()
        before = world.confirmations.get_by_delivery_request_id(r1).items_snapshot
        world.dispute.handle(r1, "cust-1", [DisputedItemSpec("milk-1", 2, "DAMAGED")])
        after = world.confirmations.get_by_delivery_request_id(r1).items_snapshot
        assert before == after


class TestFileDisputeRejections:

    def test_unlocked_order(self):
        world = World()
        r1 = world.new_request()
        world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])

        with pytest.raises(NotLocked, match="confirm your order before disputing"):
            world.dispute.handle(r1, "cust-1", [DisputedItemSpec("milk-1", 1, "DAMAGED")])

    def test_quantity_above_snapshot(self):
        world, r1 = _setup()
        with pytest.raises(InvalidDisputedItems):
            world.dispute.handle(r1, "cust-1", [DisputedItemSpec("milk-1", 3, "MISSING")])
        assert world.confirmations.get_by_delivery_request_id(r1).dispute_status is None

    def test_other_customer_sees_not_found(self):
        world, r1 = _setup()
        with pytest.raises(EntityNotFoundError):
            world.dispute.handle(r1, "cust-2", [DisputedItemSpec("milk-1", 1, "DAMAGED")])

    def test_non_http_evidence(self):
        world, r1 = _setup()
        with pytest.raises(ValidationError, match="Invalid evidence URL"):
            world.dispute.handle(
                r1,
                "cust-1",
                [DisputedItemSpec("milk-1", 1, "MISSING")],
                evidence_urls=["javascript:alert(1)"],
            )

    def test_too_many_evidence_urls(self):
        world, r1 = _setup()
        urls = [f"https://img/{i}" for i in range(21)]
        with pytest.raises(ValidationError, match="At most 20"):
            world.dispute.handle(
                r1, "cust-1", [DisputedItemSpec("milk-1", 1, "MISSING")], evidence_urls=urls
            )

    def test_overlong_notes(self):
        world, r1 = _setup()
        with pytest.raises(ValidationError, match="notes exceed"):
            world.dispute.handle(
                r1, "cust-1", [DisputedItemSpec("milk-1", 1, "DAMAGED")], "x" * 5001
            )

    def test_resolved_dispute_cannot_be_refiled(self):
        world, r1 = _setup()
        filed = world.dispute.handle(r1, "cust-1", [DisputedItemSpec("milk-1", 1, "DAMAGED")])
        world.resolve.handle(filed.confirmation_id, "admin-1", Resolution.DENIED)

        with pytest.raises(InvalidDisputeTransition):
            world.dispute.handle(r1, "cust-1", [DisputedItemSpec("milk-1", 1, "DAMAGED")])
