"""Abstract append-only store for lock audit entries.

Entries are never updated or deleted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.model.audit import AuditEntry


class AuditLogRepository(ABC):

    @abstractmethod
    def append(self, entry: AuditEntry) -> AuditEntry:
        """Store an entry and return it with its assigned ID."""

    @abstractmethod
    def list_for_delivery_request(self, request_id: str) -> list[AuditEntry]:
        """Return a request's entries in the order they were appended."""
