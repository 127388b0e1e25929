from __future__ import annotations

from tenant_access.errors import AuthError
from tenant_access.session.storage import TOKEN_KEY, SessionStorage


class SessionTokenProvider:
    """Hands out the bearer token stored at login for the current session."""

    def __init__(self, storage: SessionStorage):
        self._storage = storage

    async def get_token(self) -> str:
        token = self._storage.get_str(TOKEN_KEY)
        if not token:
            raise AuthError("Authentication token not found.")
        return token
