"""Per-invocation CLI state: settings, repositories and the caller."""

from __future__ import annotations

from dataclasses import dataclass

import click

from settlement.application.authorization import CurrentUserProvider
from settlement.domain.exceptions import DomainException
from settlement.domain.model.user import User
from settlement.domain.repository.user_repository import UserRepository
from settlement.infrastructure.bootstrap import Repositories
from settlement.infrastructure.config import Settings


class SessionUserProvider(CurrentUserProvider):
    """Resolves the ``--as`` user ID against the user store."""

    def __init__(self, user_repo: UserRepository, user_id: str | None) -> None:
        self._user_repo = user_repo
        self._user_id = user_id

    def get_current_user(self) -> User | None:
        if not self._user_id:
            return None
        return self._user_repo.get_by_id(self._user_id)


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    repos: Repositories
    session: SessionUserProvider


pass_app = click.make_pass_decorator(AppContext)


def fail(exc: DomainException) -> click.ClickException:
    """Convert a domain error into a CLI error carrying its status code."""
    return click.ClickException(f"[{exc.status_code}] {exc}")
