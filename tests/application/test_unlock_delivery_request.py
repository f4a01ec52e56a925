"""Integration tests for UnlockDeliveryRequest and caller authorization."""

import pytest

from settlement.application.authorization import require_role, require_user
from settlement.domain.exceptions import Forbidden, NotLocked, Unauthorized, ValidationError
from settlement.domain.model.user import Role, User
from settlement.domain.service.snapshot import SnapshotItemSpec
from tests.fakes import FakeCurrentUser
from tests.world import World


def _locked():
    world = World()
    r1 = world.new_request()
    world.verify_receipt(r1)
    world.confirm.handle(r1, "cust-1", [SnapshotItemSpec("Milk", 1)])
    return world, r1


class TestUnlock:

    def test_unlock_restores_auto_refunds(self):
        world, r1 = _locked()
        world.unlock.handle(r1, "admin-1", "  receipt belonged to another order ")

        view = world.show.handle(r1)
        assert view.is_locked is False
        assert view.locked_at is None
        assert view.lock_reason == "receipt belonged to another order"
        assert view.refund_policy == "AUTO_ALLOWED"
        assert view.audit[-1].action == "UNLOCK"
        assert view.audit[-1].actor_id == "admin-1"

    def test_blank_reason_rejected(self):
        world, r1 = _locked()
        with pytest.raises(ValidationError, match="reason is required"):
            world.unlock.handle(r1, "admin-1", "   ")
        assert world.requests.get_by_id(r1).lock.is_locked

    def test_overlong_reason_rejected(self):
        world, r1 = _locked()
        with pytest.raises(ValidationError, match="exceeds 500"):
            world.unlock.handle(r1, "admin-1", "x" * 501)

    def test_not_locked(self):
        world = World()
        with pytest.raises(NotLocked):
            world.unlock.handle(world.new_request(), "admin-1", "just because")


class TestAuthorization:

    def test_anonymous_caller(self):
        with pytest.raises(Unauthorized) as exc_info:
            require_user(FakeCurrentUser(None))
        assert exc_info.value.status_code == 401

    def test_customer_cannot_act_as_admin(self):
        with pytest.raises(Forbidden) as exc_info:
            require_role(FakeCurrentUser(User("cust-1")), Role.ADMIN)
        assert exc_info.value.status_code == 403

    def test_admin_allowed(self):
        admin = User("admin-1", Role.ADMIN)
        assert require_role(FakeCurrentUser(admin), Role.ADMIN) == admin
