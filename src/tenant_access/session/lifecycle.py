from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable

import httpx

from tenant_access.auth.jwt import read_claims, token_expiry
from tenant_access.auth.models import Principal, Role
from tenant_access.auth.session_resolver import resolve_principal
from tenant_access.capabilities.models import Capabilities
from tenant_access.capabilities.source_factory import CapabilitySourceFactory
from tenant_access.capabilities.store import CapabilityStore
from tenant_access.configs.logging_config import get_logger
from tenant_access.configs.settings import Settings, get_settings
from tenant_access.errors import SessionStateError
from tenant_access.notifications import Notifier, log_notifier
from tenant_access.session.storage import TOKEN_KEY, SessionStorage
from tenant_access.utils.time_utils import epoch_seconds, seconds_until
from tenant_access.visibility.evaluator import NavEntry, build_navigation, can_show
from tenant_access.webclient.BearerHttpClient import BearerHttpClient
from tenant_access.webclient.SessionTokenProvider import SessionTokenProvider

log = get_logger(__name__)


class SessionPhase(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    RESOLVING = "resolving"
    CAPABILITIES_LOADING = "capabilities_loading"
    READY = "ready"


_TRANSITIONS: dict[SessionPhase, frozenset[SessionPhase]] = {
    SessionPhase.UNAUTHENTICATED: frozenset({SessionPhase.RESOLVING}),
    SessionPhase.RESOLVING: frozenset({SessionPhase.CAPABILITIES_LOADING, SessionPhase.UNAUTHENTICATED}),
    SessionPhase.CAPABILITIES_LOADING: frozenset({SessionPhase.READY}),
    SessionPhase.READY: frozenset({SessionPhase.UNAUTHENTICATED}),
}


class AccessSession:
    """
    Owns the principal and capability store for one login.

    start() resolves the principal and loads capabilities; logout() wipes the
    session storage and closes the store. After the next login the same
    object can be start()ed again; an owned HTTP client is reopened then.
    """

    def __init__(
        self,
        storage: SessionStorage,
        *,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        notifier: Notifier = log_notifier,
    ):
        self._storage = storage
        self._settings = settings or get_settings()
        self._notifier = notifier
        self._owns_http = http_client is None
        self._open_http(http_client)

        self._phase = SessionPhase.UNAUTHENTICATED
        self._principal: Principal | None = None
        self._store: CapabilityStore | None = None
        self._logout_timer: asyncio.TimerHandle | None = None
        self._logout_task: asyncio.Task | None = None

    # ----------------------------
    # State
    # ----------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def store(self) -> CapabilityStore | None:
        return self._store

    @property
    def capabilities(self) -> Capabilities | None:
        if self._store is None or self._store.is_loading:
            return None
        return self._store.capabilities

    def _move(self, target: SessionPhase) -> None:
        if target not in _TRANSITIONS[self._phase]:
            raise SessionStateError(f"invalid session transition {self._phase.value} -> {target.value}")
        log.info("session.phase from=%s to=%s", self._phase.value, target.value)
        self._phase = target

    # ----------------------------
    # Lifecycle
    # ----------------------------

    async def start(self) -> Principal | None:
        self._move(SessionPhase.RESOLVING)
        if self._owns_http and self._http.session.is_closed:
            # logged out earlier; the next login gets a fresh pool
            self._open_http(None)

        principal = resolve_principal(self._storage, email_domain=self._settings.email_domain)
        if principal is not None and self._expired(principal.token):
            log.info("session.token_expired user=%s", principal.identity.username)
            self._storage.clear()
            principal = None
        if principal is None:
            self._move(SessionPhase.UNAUTHENTICATED)
            return None

        self._principal = principal
        self._move(SessionPhase.CAPABILITIES_LOADING)

        self._store = CapabilityStore(
            principal,
            self._sources.for_role(principal.role),
            notifier=self._notifier,
            fence_refetch=self._settings.fence_refetch,
        )
        await self._store.load()

        # a failed fetch still lands here, with no capabilities
        self._move(SessionPhase.READY)
        return principal

    async def refetch(self) -> None:
        if self._phase is not SessionPhase.READY or self._store is None:
            raise SessionStateError("refetch needs a ready session")
        await self._store.refetch()

    async def logout(self) -> str:
        """Tear the session down and return where the user should land."""
        role = self._principal.role if self._principal else None
        self._move(SessionPhase.UNAUTHENTICATED)

        self._cancel_timer()
        self._storage.clear()
        if self._store is not None:
            self._store.close()
        self._store = None
        self._principal = None
        if self._owns_http:
            await self._http.aclose()

        target = (
            self._settings.customer_logout_path if role is Role.CUSTOMER else self._settings.default_logout_path
        )
        log.info("session.logout role=%s redirect=%s", role.value if role else None, target)
        return target

    async def aclose(self) -> None:
        """Release resources without logging out; the storage is left alone."""
        self._cancel_timer()
        if self._store is not None:
            self._store.close()
        if self._owns_http:
            await self._http.aclose()

    def schedule_auto_logout(self, on_logout: Callable[[str], None] | None = None) -> None:
        """
        Log out when the token's exp passes. Must be called from a running loop.

        An undecodable or already expired token logs out right away; a token
        without exp never expires on this side.
        """
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        token = self._storage.get_str(TOKEN_KEY)

        if read_claims(token) is None:
            self._fire(on_logout)
            return
        exp = token_expiry(token)
        if exp is None:
            return
        delay = seconds_until(exp)
        if delay <= 0:
            self._fire(on_logout)
            return
        log.info("session.auto_logout.armed in_seconds=%s", int(delay))
        self._logout_timer = loop.call_later(delay, self._fire, on_logout)

    # ----------------------------
    # Gating helpers
    # ----------------------------

    def can_show(self, feature_key: str) -> bool:
        if self._phase is not SessionPhase.READY or self._principal is None:
            return False
        return can_show(self._principal.role, self.capabilities, feature_key)

    def navigation(self) -> list[NavEntry]:
        if self._phase is not SessionPhase.READY:
            return []
        return build_navigation(self._principal, self.capabilities)

    # ----------------------------
    # Internals
    # ----------------------------

    def _open_http(self, http_client: httpx.AsyncClient | None) -> None:
        self._http = BearerHttpClient(
            SessionTokenProvider(self._storage),
            client=http_client,
            base_url=self._settings.api_base_url,
            timeout=self._settings.http_timeout,
        )
        self._sources = CapabilitySourceFactory(self._http, self._settings)

    def _fire(self, on_logout: Callable[[str], None] | None) -> None:
        self._logout_task = asyncio.get_running_loop().create_task(self._auto_logout(on_logout))

    async def _auto_logout(self, on_logout: Callable[[str], None] | None) -> None:
        self._logout_timer = None
        if self._phase is not SessionPhase.READY:
            return
        target = await self.logout()
        if on_logout is not None:
            on_logout(target)

    def _cancel_timer(self) -> None:
        if self._logout_timer is not None:
            self._logout_timer.cancel()
            self._logout_timer = None

    @staticmethod
    def _expired(token: str) -> bool:
        exp = token_expiry(token)
        return exp is not None and exp <= epoch_seconds()
