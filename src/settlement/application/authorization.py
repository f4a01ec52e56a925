"""Caller authorization.

Identity comes from the session layer through ``CurrentUserProvider``;
these helpers turn "who is calling" into 401/403 errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from settlement.domain.exceptions import Forbidden, Unauthorized
from settlement.domain.model.user import Role, User


class CurrentUserProvider(ABC):

    @abstractmethod
    def get_current_user(self) -> User | None:
        """Return the calling user, or None when nobody is signed in."""


def require_user(provider: CurrentUserProvider) -> User:
    user = provider.get_current_user()
    if user is None:
        raise Unauthorized("Unauthorized")
    return user


def require_role(provider: CurrentUserProvider, *roles: Role) -> User:
    user = require_user(provider)
    if user.role not in roles:
        raise Forbidden("Forbidden")
    return user
