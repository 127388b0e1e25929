from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    MASTER = "master"
    ADMIN = "admin"
    MANAGER = "manager"
    CUSTOMER = "customer"
    USER = "user"


@dataclass(frozen=True)
class Identity:
    name: str
    username: str
    email: str
    initials: str


@dataclass(frozen=True)
class TenantLinkage:
    """Owning client of a customer principal."""

    client_username: str
    slug: str


@dataclass(frozen=True)
class Principal:
    role: Role
    identity: Identity
    token: str = field(repr=False)
    tenant: TenantLinkage | None = None
