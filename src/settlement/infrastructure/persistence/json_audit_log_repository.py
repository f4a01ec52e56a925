"""JSON-file-backed implementation of AuditLogRepository."""

from __future__ import annotations

from dataclasses import replace

from settlement.domain.clock import format_instant, parse_instant
from settlement.domain.model.audit import AuditAction, AuditEntry
from settlement.domain.repository.audit_log_repository import AuditLogRepository
from settlement.infrastructure.persistence.json_file import JsonFileRepository, new_id


class JsonAuditLogRepository(JsonFileRepository, AuditLogRepository):

    def append(self, entry: AuditEntry) -> AuditEntry:
        stored = replace(entry, id=new_id())
        with self._lock:
            records = self._load_raw()
            records.append(self._to_raw(stored))
            self._persist_raw(records)
        return stored

    def list_for_delivery_request(self, request_id: str) -> list[AuditEntry]:
        return [
            self._to_domain(raw)
            for raw in self._load_raw()
            if raw["delivery_request_id"] == request_id
        ]

    @staticmethod
    def _to_raw(entry: AuditEntry) -> dict:
        return {
            "id": entry.id,
            "actor_id": entry.actor_id,
            "delivery_request_id": entry.delivery_request_id,
            "action": entry.action.value,
            "details": dict(entry.details),
            "previous_state": dict(entry.previous_state),
            "new_state": dict(entry.new_state),
            "created_at": format_instant(entry.created_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> AuditEntry:
        return AuditEntry(
            id=raw["id"],
            actor_id=raw["actor_id"],
            delivery_request_id=raw["delivery_request_id"],
            action=AuditAction(raw["action"]),
            details=raw.get("details", {}),
            previous_state=raw["previous_state"],
            new_state=raw["new_state"],
            created_at=parse_instant(raw["created_at"]),
        )
