from __future__ import annotations

import asyncio

import httpx
import pytest

from tenant_access.auth.session_resolver import resolve_principal
from tenant_access.capabilities.source_factory import CapabilitySourceFactory
from tenant_access.capabilities.sources import ClientPermissionSource, EffectiveUserPermissionSource
from tenant_access.capabilities.store import LOAD_FAILED_TITLE, CapabilityStore
from tenant_access.auth.models import Role
from tenant_access.session.storage import SessionStorage
from tenant_access.webclient.BearerHttpClient import BearerHttpClient
from tenant_access.webclient.SessionTokenProvider import SessionTokenProvider

from helpers import API, make_token, mock_client


def _store(storage, settings, handler, toasts, *, source_cls=ClientPermissionSource, fence=False):
    http = BearerHttpClient(SessionTokenProvider(storage), client=mock_client(handler), base_url=API)
    return CapabilityStore(
        resolve_principal(storage),
        source_cls(http, settings),
        notifier=toasts.append,
        fence_refetch=fence,
    )


async def test_permissions_endpoint_populates_store(customer_storage, settings) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"canCreateUsers": True, "maxCompanies": 4, "extra": 1})

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    assert store.is_loading is True
    await store.load()

    assert store.is_loading is False
    assert store.capabilities.can_create_users is True
    assert store.capabilities.max_companies == 4
    assert toasts == []
    assert seen[0].url == httpx.URL(f"{API}/api/clients/my/permissions")
    assert seen[0].headers["Authorization"] == f"Bearer {customer_storage['token']}"


async def test_404_falls_back_to_tenant_defaults_once(customer_storage, settings) -> None:
    calls = []
    record = {
        "canCreateUsers": True,
        "canCreateProducts": False,
        "canCreateCustomers": True,
        "canCreateVendors": False,
        "canCreateCompanies": True,
        "canCreateInventory": True,
        "canUpdateCompanies": False,
        "canSendInvoiceEmail": True,
        "canSendInvoiceWhatsapp": False,
        "maxCompanies": 7,
        "contactName": "Acme",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path == "/api/clients/my/permissions":
            return httpx.Response(404, json={"message": "no overrides"})
        return httpx.Response(200, json=record)

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert calls == ["/api/clients/my/permissions", "/api/clients/my"]
    payload = store.capabilities.as_payload()
    for key in (
        "canCreateUsers",
        "canCreateProducts",
        "canCreateCustomers",
        "canCreateVendors",
        "canCreateCompanies",
        "canCreateInventory",
        "canUpdateCompanies",
        "canSendInvoiceEmail",
        "canSendInvoiceWhatsapp",
    ):
        assert payload[key] is record[key]
    # limits are not part of the fallback copy
    assert payload["maxCompanies"] == 0
    assert toasts == []


@pytest.mark.parametrize("status", [401, 403, 500, 503])
async def test_other_errors_fail_closed_with_one_toast(customer_storage, settings, status) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "nope"})

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert store.capabilities is None
    assert store.is_loading is False
    assert store.error == "Failed to fetch permissions"
    assert len(toasts) == 1
    assert toasts[0].title == LOAD_FAILED_TITLE
    assert toasts[0].variant == "destructive"


async def test_transport_error_is_contained(customer_storage, settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert store.capabilities is None
    assert "connection refused" in store.error
    assert len(toasts) == 1


async def test_malformed_flag_keeps_valid_flags(customer_storage, settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"canCreateInventory": True, "canCreateUsers": "maybe"})

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert store.error is None
    assert store.capabilities.can_create_inventory is True
    assert store.capabilities.can_create_users is False
    assert toasts == []


async def test_unexpected_errors_stay_inside_the_store(customer_storage, settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("Cannot send a request, as the client has been closed.")

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert store.capabilities is None
    assert store.is_loading is False
    assert store.error == "Cannot send a request, as the client has been closed."
    assert len(toasts) == 1


async def test_bad_base_url_is_contained(customer_storage, settings) -> None:
    http = BearerHttpClient(
        SessionTokenProvider(customer_storage),
        client=mock_client(lambda r: httpx.Response(200, json={})),
        base_url="http://api\x00.test",
    )
    toasts = []
    store = CapabilityStore(
        resolve_principal(customer_storage), ClientPermissionSource(http, settings), notifier=toasts.append
    )
    await store.load()

    assert store.capabilities is None
    assert store.is_loading is False
    assert len(toasts) == 1


async def test_bad_json_is_contained(customer_storage, settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    toasts = []
    store = _store(customer_storage, settings, handler, toasts)
    await store.load()

    assert store.capabilities is None
    assert store.error == "Invalid permissions response"


async def test_missing_token_never_calls_the_api(settings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    storage = SessionStorage({"token": "t", "role": "customer"})
    toasts = []
    store = _store(storage, settings, handler, toasts)
    # logged out from another tab between resolve and fetch
    storage.clear()
    await store.load()

    assert calls == []
    assert store.capabilities is None
    assert store.is_loading is False
    assert store.error == "Authentication token not found."


async def test_exempt_role_has_no_source(settings) -> None:
    factory = CapabilitySourceFactory(
        BearerHttpClient(SessionTokenProvider(SessionStorage()), client=mock_client(lambda r: None)), settings
    )
    for role in (Role.MASTER, Role.ADMIN, Role.MANAGER):
        assert factory.for_role(role) is None
    assert isinstance(factory.for_role(Role.CUSTOMER), ClientPermissionSource)
    assert isinstance(factory.for_role(Role.USER), EffectiveUserPermissionSource)

    store = CapabilityStore(None, None)
    await store.load()
    assert store.is_loading is False
    assert store.capabilities is None


async def test_user_source_reads_effective_permissions(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/user-permissions/me/effective"
        return httpx.Response(200, json={"canCreateSaleEntries": True, "canCreateUsers": True})

    storage = SessionStorage({"token": make_token("user"), "role": "user", "userId": "u1"})
    toasts = []
    store = _store(storage, settings, handler, toasts, source_cls=EffectiveUserPermissionSource)
    await store.load()

    assert store.capabilities.can_create_sale_entries is True
    # not one of the per-user flags
    assert store.capabilities.can_create_users is False


async def test_user_source_surfaces_server_message(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "User is disabled"})

    storage = SessionStorage({"token": "t", "role": "user"})
    toasts = []
    store = _store(storage, settings, handler, toasts, source_cls=EffectiveUserPermissionSource)
    await store.load()

    assert store.error == "User is disabled"
    assert toasts[0].description == "User is disabled"


def _ordered_handler(payloads):
    gates = [asyncio.Event() for _ in payloads]
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        idx = len(calls)
        calls.append(idx)
        await gates[idx].wait()
        return httpx.Response(200, json=payloads[idx])

    return handler, gates, calls


async def _race(store, gates, calls) -> None:
    first = asyncio.create_task(store.refetch())
    second = asyncio.create_task(store.refetch())
    while len(calls) < 2:
        await asyncio.sleep(0)
    # the newer request answers first, the older one last
    gates[1].set()
    await second
    gates[0].set()
    await first


async def test_out_of_order_refetch_last_landing_wins(customer_storage, settings) -> None:
    handler, gates, calls = _ordered_handler([{"canCreateUsers": True}, {"canCreateInventory": True}])
    store = _store(customer_storage, settings, handler, [])

    await _race(store, gates, calls)

    # the stale response overwrote the newer one
    assert store.capabilities.can_create_users is True
    assert store.capabilities.can_create_inventory is False


async def test_fenced_refetch_keeps_newest_request(customer_storage, settings) -> None:
    handler, gates, calls = _ordered_handler([{"canCreateUsers": True}, {"canCreateInventory": True}])
    store = _store(customer_storage, settings, handler, [], fence=True)

    await _race(store, gates, calls)

    assert store.capabilities.can_create_inventory is True
    assert store.capabilities.can_create_users is False
    assert store.is_loading is False


async def test_closed_store_ignores_late_response(customer_storage, settings) -> None:
    handler, gates, calls = _ordered_handler([{"canCreateUsers": True}])
    store = _store(customer_storage, settings, handler, [])

    task = asyncio.create_task(store.load())
    while not calls:
        await asyncio.sleep(0)
    store.close()
    assert store.closed
    gates[0].set()
    await task

    assert store.capabilities is None
    assert store.is_loading is True

    await store.refetch()
    assert len(calls) == 1
