from __future__ import annotations

import httpx

from tenant_access.webclient.SessionTokenProvider import SessionTokenProvider


class BearerHttpClient:
    def __init__(
        self,
        token_provider: SessionTokenProvider,
        client: httpx.AsyncClient | None = None,
        base_url: str = "",
        timeout: float | None = None,
    ):
        self.token_provider = token_provider
        self.session = client or httpx.AsyncClient(timeout=timeout)
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        token = await self.token_provider.get_token()

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {token}"

        return await self.session.request(
            method,
            self._url(path),
            headers=headers,
            **kwargs,
        )

    async def get(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def aclose(self) -> None:
        await self.session.aclose()
