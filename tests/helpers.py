from __future__ import annotations

import time
from typing import Any, Callable

import httpx
from jose import jwt

API = "http://api.test"


def make_token(role: str | None = "customer", exp_in: float | None = 3600, **claims: Any) -> str:
    payload: dict[str, Any] = dict(claims)
    if role is not None:
        payload["role"] = role
    if exp_in is not None:
        payload["exp"] = int(time.time() + exp_in)
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def mock_client(handler: Callable) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
