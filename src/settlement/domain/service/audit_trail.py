"""Domain service: append-only recorder of lock transitions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from settlement.domain.model.audit import AuditAction, AuditEntry
from settlement.domain.model.delivery_request import LockState
from settlement.domain.repository.audit_log_repository import AuditLogRepository


class AuditTrail:

    def __init__(self, audit_repo: AuditLogRepository) -> None:
        self._audit_repo = audit_repo

    def record_transition(
        self,
        actor_id: str,
        delivery_request_id: str,
        action: AuditAction,
        before: LockState,
        after: LockState,
        at: datetime,
        details: dict[str, Any] | None = None,
    ) -> AuditEntry:
        return self._audit_repo.append(
            AuditEntry(
                id=None,
                actor_id=actor_id,
                delivery_request_id=delivery_request_id,
                action=action,
                details=details or {},
                previous_state=before.to_dict(),
                new_state=after.to_dict(),
                created_at=at,
            )
        )

    def history(self, delivery_request_id: str) -> list[AuditEntry]:
        return self._audit_repo.list_for_delivery_request(delivery_request_id)
