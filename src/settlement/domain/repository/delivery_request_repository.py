"""Abstract repository for DeliveryRequest aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.model.delivery_request import DeliveryRequest, LockState


class DeliveryRequestRepository(ABC):

    @abstractmethod
    def get_by_id(self, request_id: str) -> DeliveryRequest | None:
        """Return a delivery request by its ID, or None if not found."""

    @abstractmethod
    def save(self, request: DeliveryRequest) -> None:
        """Persist a new or updated delivery request, assigning an ID if needed.

        On update the stored lock fields are kept; they change only
        through ``update_lock_if``.
        """

    @abstractmethod
    def update_lock_if(
        self,
        request_id: str,
        expected_locked: bool,
        new_state: LockState,
    ) -> bool:
        """Conditionally replace the lock fields.

        Writes ``new_state`` only while the stored ``is_locked`` equals
        ``expected_locked`` and returns whether the write happened.  This
        is the compare-and-swap that makes concurrent lock attempts safe.
        """
