"""Abstract repository for caller identities."""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.model.user import User


class UserRepository(ABC):

    @abstractmethod
    def get_by_id(self, user_id: str) -> User | None:
        """Return a user by ID, or None if unknown."""

    @abstractmethod
    def save(self, user: User) -> None:
        """Persist a new or updated user."""
