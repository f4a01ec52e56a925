"""Integration tests for the ConfirmItems use case."""

import pytest

from settlement.domain.exceptions import (
    EmptySnapshot,
    EntityNotFoundError,
    OrderLocked,
    ValidationError,
)
from settlement.domain.model.receipt_verification import VerificationStatus
from settlement.domain.model.value_objects import Money
from settlement.domain.service.snapshot import SnapshotItemSpec
from tests.world import World


class TestConfirmItemsHappyPath:

    def test_explicit_items_frozen_with_total(self):
        world = World()
        r1 = world.new_request(delivery_fee=Money.of("5"), discount=Money.of("2"))
        world.verify_receipt(r1, subtotal="20.00", status=VerificationStatus.PENDING)

        result = world.confirm.handle(
            r1, "cust-1", [SnapshotItemSpec("Milk", 2, "3.50"), SnapshotItemSpec("Eggs", 1)]
        )

        assert result.item_count == 2
        assert result.total_snapshot == "23.00"
        assert result.locked is False
        confirmation = world.confirmations.get_by_delivery_request_id(r1)
        assert confirmation.is_confirmed
        assert confirmation.receipt_verification_id == "rv-1"

    def test_snapshot_derived_from_receipt_lines(self):
        world = World()
        r1 = world.new_request()
        world.verify_receipt(
            r1,
            items=[{"name": "Milk", "qty": 2, "price": "3.50"}, {"title": "Bread", "price": 4}],
            status=VerificationStatus.PENDING,
        )

        result = world.confirm.handle(r1, "cust-1")

        assert result.item_count == 2
        assert result.total_snapshot == "11.00"
        keys = [i.item_key for i in world.confirmations.get_by_delivery_request_id(r1).items_snapshot]
        assert keys == ["milk-1", "bread-2"]

    def test_discount_never_makes_total_negative(self):
        world = World()
        r1 = world.new_request(discount=Money.of("50"))
        result = world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])
        assert result.total_snapshot == "0.00"

    def test_verified_receipt_locks_on_confirmation(self):
        world = World()
        r1 = world.new_request()
        world.verify_receipt(r1)

        result = world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])

        assert result.locked is True
        (entry,) = world.audit_log.entries
        assert entry.actor_id == "cust-1"

    def test_reconfirming_unlocked_order_overwrites_snapshot(self):
        world = World()
        r1 = world.new_request()
        first = world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])
        world.clock.advance(minutes=1)
        second = world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Eggs", 6)])

        assert first.confirmation_id == second.confirmation_id
        confirmation = world.confirmations.get_by_delivery_request_id(r1)
        assert [i.name for i in confirmation.items_snapshot] == ["Eggs"]
        assert confirmation.confirmed_at == world.clock()


class TestConfirmItemsRejections:

    def test_nothing_to_confirm(self):
        world = World()
        with pytest.raises(EmptySnapshot):
            world.confirm.handle(world.new_request(), "cust-1")

    def test_other_customer_sees_not_found(self):
        world = World()
        r1 = world.new_request()
        with pytest.raises(EntityNotFoundError):
            world.confirm.handle(r1, "cust-2", [SnapshotItemSpec("Milk", 1)])

    def test_locked_order_keeps_its_snapshot(self):
        world = World()
        r1 = world.new_request()
        world.verify_receipt(r1)
        world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])

        with pytest.raises(OrderLocked):
            world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 5)])
        snapshot = world.confirmations.get_by_delivery_request_id(r1).items_snapshot
        assert snapshot[0].quantity.value == 1

    def test_unit_price_out_of_range(self):
        world = World()
        r1 = world.new_request()
        with pytest.raises(ValidationError, match="out of range"):
            world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 2, "1e30")])
        assert world.confirmations.get_by_delivery_request_id(r1) is None
