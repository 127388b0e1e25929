from __future__ import annotations

from typing import Iterator, Mapping, MutableMapping

TOKEN_KEY = "token"
ROLE_KEY = "role"
USERNAME_KEYS = ("username", "userId", "userName", "name")
NAME_KEY = "name"
EMAIL_KEY = "email"
CLIENT_USERNAME_KEY = "clientUsername"
SLUG_KEY = "slug"

SESSION_KEYS = (
    TOKEN_KEY,
    ROLE_KEY,
    *USERNAME_KEYS[:3],
    NAME_KEY,
    EMAIL_KEY,
    CLIENT_USERNAME_KEY,
    SLUG_KEY,
    "tenantSlug",
)


class SessionStorage(MutableMapping[str, str]):
    """
    Key-value session state written at login and wiped at logout.

    Instances are handed to the resolver explicitly so tests can build one from
    a plain dict instead of touching shared state.
    """

    def __init__(self, values: Mapping[str, str | None] | None = None):
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            if value is not None:
                self._values[key] = str(value)

    @classmethod
    def from_cookies(cls, cookies: Mapping[str, str]) -> "SessionStorage":
        return cls({k: v for k, v in cookies.items() if k in SESSION_KEYS})

    def get_str(self, key: str) -> str:
        return self._values.get(key, "")

    def first_of(self, keys: tuple[str, ...]) -> str:
        for key in keys:
            value = self._values.get(key)
            if value:
                return value
        return ""

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._values[key] = str(value)

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        # never print the token
        keys = ", ".join(sorted(self._values))
        return f"SessionStorage(keys=[{keys}])"
