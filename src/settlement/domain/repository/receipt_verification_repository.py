"""Abstract repository for ReceiptVerification records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.model.receipt_verification import ReceiptVerification


class ReceiptVerificationRepository(ABC):

    @abstractmethod
    def get_by_content_hash(self, content_hash: str) -> ReceiptVerification | None:
        """Return the verification for an image hash, across all requests."""

    @abstractmethod
    def latest_for(self, delivery_request_id: str) -> ReceiptVerification | None:
        """Return the most recently created verification for a request.

        Ties on ``created_at`` go to the one stored last.
        """

    @abstractmethod
    def add(self, verification: ReceiptVerification) -> None:
        """Store a new verification.

        Raises DuplicateReceipt if the content hash is already stored.
        """
