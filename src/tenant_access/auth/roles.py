from __future__ import annotations

from tenant_access.auth.models import Role

# display roles stored by older login flows
ROLE_ALIASES: dict[str, Role] = {
    "client": Role.CUSTOMER,
    "viewer": Role.USER,
    "accountant": Role.USER,
}

BYPASS_ROLES: frozenset[Role] = frozenset({Role.MASTER, Role.ADMIN})


def normalize_role(raw: str | Role | None) -> Role | None:
    """
    Map a stored role string onto the canonical set.

    Unknown or empty values give None, which callers treat as unauthenticated.
    Passing a Role back in returns it unchanged.
    """
    if isinstance(raw, Role):
        return raw
    value = str(raw or "").strip().lower()
    if not value:
        return None
    if value in ROLE_ALIASES:
        return ROLE_ALIASES[value]
    try:
        return Role(value)
    except ValueError:
        return None
