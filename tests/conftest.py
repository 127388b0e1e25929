from __future__ import annotations

import pytest

from tenant_access.configs.settings import Settings
from tenant_access.session.storage import SessionStorage

from helpers import API, make_token


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url=API, email_domain="accountech.com")


@pytest.fixture
def customer_storage() -> SessionStorage:
    return SessionStorage(
        {
            "token": make_token("customer"),
            "role": "customer",
            "username": "acme",
            "name": "Acme Traders",
            "email": "owner@acme.test",
            "clientUsername": "acme",
            "slug": "acme-traders",
        }
    )
