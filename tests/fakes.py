"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the JSON repositories
but keep everything in a dict. No file I/O, no side effects.  Stored
objects are copied on the way in and out, like a real store would.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from settlement.application.authorization import CurrentUserProvider
from settlement.domain.exceptions import DuplicateReceipt
from settlement.domain.model.audit import AuditEntry
from settlement.domain.model.delivery_request import DeliveryRequest, LockState
from settlement.domain.model.order_confirmation import OrderConfirmation
from settlement.domain.model.receipt_verification import ReceiptVerification
from settlement.domain.model.user import User
from settlement.domain.repository.audit_log_repository import AuditLogRepository
from settlement.domain.repository.delivery_request_repository import (
    DeliveryRequestRepository,
)
from settlement.domain.repository.order_confirmation_repository import (
    OrderConfirmationRepository,
)
from settlement.domain.repository.receipt_verification_repository import (
    ReceiptVerificationRepository,
)
from settlement.domain.repository.user_repository import UserRepository

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class FakeDeliveryRequestRepository(DeliveryRequestRepository):

    def __init__(self) -> None:
        self._store: dict[str, DeliveryRequest] = {}
        self._next_id = 1
        self.lock_writes = 0

    def get_by_id(self, request_id: str) -> DeliveryRequest | None:
        request = self._store.get(request_id)
        return copy.deepcopy(request) if request is not None else None

    def save(self, request: DeliveryRequest) -> None:
        if request.id is None:
            request.id = f"dr-{self._next_id}"
            self._next_id += 1
        stored = self._store.get(request.id)
        if stored is not None:
            request.lock = stored.lock
        self._store[request.id] = copy.deepcopy(request)

    def update_lock_if(
        self,
        request_id: str,
        expected_locked: bool,
        new_state: LockState,
    ) -> bool:
        stored = self._store.get(request_id)
        if stored is None or stored.lock.is_locked != expected_locked:
            return False
        stored.lock = new_state
        self.lock_writes += 1
        return True

    def force_lock(self, request_id: str, state: LockState) -> None:
        """Simulate another writer changing the lock behind our back."""
        self._store[request_id].lock = state


class FakeReceiptVerificationRepository(ReceiptVerificationRepository):

    def __init__(self) -> None:
        self._store: list[ReceiptVerification] = []
        self._next_id = 1

    def get_by_content_hash(self, content_hash: str) -> ReceiptVerification | None:
        for v in self._store:
            if v.content_hash == content_hash:
                return copy.deepcopy(v)
        return None

    def latest_for(self, delivery_request_id: str) -> ReceiptVerification | None:
        latest = None
        for v in self._store:
            if v.delivery_request_id == delivery_request_id and (
                latest is None or v.created_at >= latest.created_at
            ):
                latest = v
        return copy.deepcopy(latest)

    def add(self, verification: ReceiptVerification) -> None:
        if any(v.content_hash == verification.content_hash for v in self._store):
            raise DuplicateReceipt("This receipt was already submitted")
        if verification.id is None:
            verification.id = f"rv-{self._next_id}"
            self._next_id += 1
        self._store.append(copy.deepcopy(verification))


class FakeOrderConfirmationRepository(OrderConfirmationRepository):

    def __init__(self) -> None:
        self._store: dict[str, OrderConfirmation] = {}
        self._next_id = 1

    def get_by_id(self, confirmation_id: str) -> OrderConfirmation | None:
        for c in self._store.values():
            if c.id == confirmation_id:
                return copy.deepcopy(c)
        return None

    def get_by_delivery_request_id(self, request_id: str) -> OrderConfirmation | None:
        c = self._store.get(request_id)
        return copy.deepcopy(c) if c is not None else None

    def save(self, confirmation: OrderConfirmation) -> None:
        stored = self._store.get(confirmation.delivery_request_id)
        if stored is not None:
            confirmation.id = stored.id
        if confirmation.id is None:
            confirmation.id = f"oc-{self._next_id}"
            self._next_id += 1
        self._store[confirmation.delivery_request_id] = copy.deepcopy(confirmation)


class FakeAuditLogRepository(AuditLogRepository):

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> AuditEntry:
        stored = replace(entry, id=f"al-{len(self.entries) + 1}")
        self.entries.append(stored)
        return stored

    def list_for_delivery_request(self, request_id: str) -> list[AuditEntry]:
        return [e for e in self.entries if e.delivery_request_id == request_id]


class FakeUserRepository(UserRepository):

    def __init__(self, users: list[User] | None = None) -> None:
        self._store: dict[str, User] = {u.id: u for u in users or []}

    def get_by_id(self, user_id: str) -> User | None:
        return self._store.get(user_id)

    def save(self, user: User) -> None:
        self._store[user.id] = user


class FakeCurrentUser(CurrentUserProvider):

    def __init__(self, user: User | None) -> None:
        self._user = user

    def get_current_user(self) -> User | None:
        return self._user
