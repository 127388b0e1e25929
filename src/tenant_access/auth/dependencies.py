from __future__ import annotations

from typing import AsyncIterator, Callable

from fastapi import Depends, Request

from tenant_access.auth.models import Principal
from tenant_access.configs.logging_config import get_logger
from tenant_access.configs.settings import get_settings
from tenant_access.errors import AuthError, ForbiddenError
from tenant_access.session.lifecycle import AccessSession
from tenant_access.session.storage import TOKEN_KEY, SessionStorage

log = get_logger(__name__)


def _bearer_token(value: str | None) -> str:
    if not value:
        raise AuthError("missing authorization header")
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("invalid authorization header")
    return token.strip()


def get_session_storage(request: Request) -> SessionStorage:
    """
    Session fields travel as cookies; an Authorization header overrides the
    cookie token.
    """
    storage = SessionStorage.from_cookies(request.cookies)
    header = request.headers.get("authorization")
    if header:
        storage[TOKEN_KEY] = _bearer_token(header)
    return storage


async def get_access_session(
    request: Request,
    storage: SessionStorage = Depends(get_session_storage),
) -> AsyncIterator[AccessSession]:
    session = AccessSession(
        storage,
        settings=getattr(request.app.state, "settings", None) or get_settings(),
        http_client=getattr(request.app.state, "http_client", None),
    )
    await session.start()
    try:
        yield session
    finally:
        await session.aclose()


async def get_principal(session: AccessSession = Depends(get_access_session)) -> Principal:
    principal = session.principal
    if principal is None:
        log.info("auth.no_principal")
        raise AuthError("authentication required")
    log.info(
        "auth.principal role=%s user=%s tenant=%s",
        principal.role.value,
        principal.identity.username,
        principal.tenant.slug if principal.tenant else None,
    )
    return principal


def require_feature(feature_key: str) -> Callable:
    async def _dependency(
        principal: Principal = Depends(get_principal),
        session: AccessSession = Depends(get_access_session),
    ) -> Principal:
        if not session.can_show(feature_key):
            log.info("auth.feature_denied feature=%s role=%s", feature_key, principal.role.value)
            raise ForbiddenError(f"feature not available: {feature_key}")
        return principal

    return _dependency
