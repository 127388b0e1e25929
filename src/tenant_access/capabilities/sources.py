from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from tenant_access.auth.models import Principal
from tenant_access.capabilities.models import CLIENT_FLAGS, USER_FLAGS, Capabilities
from tenant_access.configs.logging_config import get_logger
from tenant_access.configs.settings import Settings
from tenant_access.errors import CapabilityFetchError
from tenant_access.webclient.BearerHttpClient import BearerHttpClient

log = get_logger(__name__)


class CapabilitySource(ABC):
    """
    Template-method base class.
    Concrete sources override only _fetch_core().
    """

    def __init__(self, client: BearerHttpClient, settings: Settings):
        self._client = client
        self._settings = settings

    # ----------------------------
    # Public API
    # ----------------------------

    async def fetch(self, principal: Principal) -> Capabilities:
        """
        One network read. Every failure leaves here as CapabilityFetchError.
        """
        log.info(
            "caps.fetch.start source=%s role=%s user=%s",
            self.name(),
            principal.role.value,
            principal.identity.username,
        )
        try:
            caps = await self._fetch_core(principal)
        except CapabilityFetchError:
            raise
        except httpx.HTTPError as e:
            raise CapabilityFetchError(str(e) or type(e).__name__) from e
        except ValueError as e:
            # undecodable body or a payload that fails the schema
            raise CapabilityFetchError("Invalid permissions response") from e

        log.info("caps.fetch.ok source=%s user=%s", self.name(), principal.identity.username)
        return caps

    # ----------------------------
    # Helpers
    # ----------------------------

    @staticmethod
    def _error_message(resp: httpx.Response, default: str) -> str:
        try:
            body: Any = resp.json()
        except ValueError:
            return default
        if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
        return default

    # ----------------------------
    # Mandatory override
    # ----------------------------

    @abstractmethod
    async def _fetch_core(self, principal: Principal) -> Capabilities:
        pass

    @abstractmethod
    def name(self) -> str:
        pass


class ClientPermissionSource(CapabilitySource):
    """Tenant-specific overrides, falling back to the client record on 404."""

    def name(self) -> str:
        return "client"

    async def _fetch_core(self, principal: Principal) -> Capabilities:
        resp = await self._client.get(self._settings.client_permissions_path)
        if resp.is_success:
            return Capabilities.from_payload(resp.json())

        if resp.status_code != 404:
            log.warning("caps.client.failed status=%s", resp.status_code)
            raise CapabilityFetchError("Failed to fetch permissions", status_code=resp.status_code)

        log.info("caps.client.no_overrides fallback=tenant_defaults user=%s", principal.identity.username)
        client_resp = await self._client.get(self._settings.client_record_path)
        if not client_resp.is_success:
            log.warning("caps.client.defaults_failed status=%s", client_resp.status_code)
            raise CapabilityFetchError(
                self._error_message(client_resp, "Failed to fetch client defaults"),
                status_code=client_resp.status_code,
            )
        return Capabilities.from_payload(client_resp.json(), CLIENT_FLAGS)


class EffectiveUserPermissionSource(CapabilitySource):
    def name(self) -> str:
        return "user"

    async def _fetch_core(self, principal: Principal) -> Capabilities:
        resp = await self._client.get(self._settings.user_permissions_path)
        if not resp.is_success:
            log.warning("caps.user.failed status=%s", resp.status_code)
            raise CapabilityFetchError(
                self._error_message(resp, "Failed to fetch permissions"),
                status_code=resp.status_code,
            )
        return Capabilities.from_payload(resp.json(), USER_FLAGS)
