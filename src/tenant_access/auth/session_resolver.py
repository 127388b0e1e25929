from __future__ import annotations

from tenant_access.auth.models import Identity, Principal, Role, TenantLinkage
from tenant_access.auth.roles import normalize_role
from tenant_access.configs.logging_config import get_logger
from tenant_access.configs.settings import get_settings
from tenant_access.session.storage import (
    CLIENT_USERNAME_KEY,
    EMAIL_KEY,
    NAME_KEY,
    ROLE_KEY,
    SLUG_KEY,
    TOKEN_KEY,
    USERNAME_KEYS,
    SessionStorage,
)

log = get_logger(__name__)


def resolve_principal(storage: SessionStorage, *, email_domain: str | None = None) -> Principal | None:
    """
    Build the current principal from persisted session fields.

    Partial or stale state is expected here: a missing token, a missing role or
    a role outside the canonical set all give None rather than an error.
    """
    token = storage.get_str(TOKEN_KEY)
    role = normalize_role(storage.get_str(ROLE_KEY))
    if not token or role is None:
        log.debug("session.resolve.none has_token=%s role=%s", bool(token), storage.get_str(ROLE_KEY))
        return None

    domain = email_domain or get_settings().email_domain
    stored_username = storage.first_of(USERNAME_KEYS)
    name = storage.get_str(NAME_KEY) or stored_username or "User"
    email = storage.get_str(EMAIL_KEY) or (
        f"{stored_username}@{domain}" if stored_username else f"user@{domain}"
    )
    initials = name[:2].upper()

    tenant = None
    username = stored_username or role.value
    if role is Role.CUSTOMER:
        client_username = storage.get_str(CLIENT_USERNAME_KEY) or stored_username
        slug = storage.get_str(SLUG_KEY) or client_username
        username = stored_username or client_username or role.value
        tenant = TenantLinkage(client_username=client_username, slug=slug)

    log.debug("session.resolve.ok role=%s username=%s", role.value, username)
    return Principal(
        role=role,
        identity=Identity(name=name, username=username, email=email, initials=initials),
        token=token,
        tenant=tenant,
    )
