"""Caller identity as resolved by the session layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    CUSTOMER = "CUSTOMER"
    DRIVER = "DRIVER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class User:
    id: str
    role: Role = Role.CUSTOMER
