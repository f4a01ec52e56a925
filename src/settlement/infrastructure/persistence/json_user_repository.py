"""JSON-file-backed implementation of UserRepository."""

from __future__ import annotations

from settlement.domain.model.user import Role, User
from settlement.domain.repository.user_repository import UserRepository
from settlement.infrastructure.persistence.json_file import JsonFileRepository


class JsonUserRepository(JsonFileRepository, UserRepository):

    def get_by_id(self, user_id: str) -> User | None:
        for raw in self._load_raw():
            if raw["id"] == user_id:
                return User(id=raw["id"], role=Role(raw["role"]))
        return None

    def save(self, user: User) -> None:
        with self._lock:
            records = self._load_raw()
            self._upsert_raw(records, {"id": user.id, "role": user.role.value})
            self._persist_raw(records)
