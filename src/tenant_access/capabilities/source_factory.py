from __future__ import annotations

from tenant_access.auth.models import Role
from tenant_access.capabilities.sources import (
    CapabilitySource,
    ClientPermissionSource,
    EffectiveUserPermissionSource,
)
from tenant_access.configs.settings import Settings
from tenant_access.webclient.BearerHttpClient import BearerHttpClient


class CapabilitySourceFactory:
    def __init__(self, client: BearerHttpClient, settings: Settings):
        self._sources: dict[Role, CapabilitySource] = {
            Role.CUSTOMER: ClientPermissionSource(client, settings),
            Role.USER: EffectiveUserPermissionSource(client, settings),
        }

    def for_role(self, role: Role) -> CapabilitySource | None:
        """None for capability-exempt roles (master, admin, manager)."""
        return self._sources.get(role)
