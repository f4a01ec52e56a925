"""Abstract repository for OrderConfirmation records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.model.order_confirmation import OrderConfirmation


class OrderConfirmationRepository(ABC):

    @abstractmethod
    def get_by_id(self, confirmation_id: str) -> OrderConfirmation | None:
        """Return a confirmation by its ID, or None if not found."""

    @abstractmethod
    def get_by_delivery_request_id(self, request_id: str) -> OrderConfirmation | None:
        """Return the (unique) confirmation of a delivery request, or None."""

    @abstractmethod
    def save(self, confirmation: OrderConfirmation) -> None:
        """Upsert keyed by delivery request ID, assigning an ID if needed."""
