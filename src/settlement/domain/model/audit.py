"""Append-only audit entries for settlement lock transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from settlement.domain.clock import utc_now


class AuditAction(Enum):
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"


@dataclass(frozen=True)
class AuditEntry:
    """One lock-state transition.

    ``previous_state`` and ``new_state`` always hold all four lock fields
    (see ``LockState.to_dict``).  Entries are never updated or deleted.
    """

    id: str | None
    actor_id: str
    delivery_request_id: str
    action: AuditAction
    details: Mapping[str, Any]
    previous_state: Mapping[str, Any]
    new_state: Mapping[str, Any]
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        for name in ("details", "previous_state", "new_state"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
