from __future__ import annotations

import pytest

from tenant_access.auth.dependencies import _bearer_token
from tenant_access.errors import AuthError


def test_bearer_token_ok() -> None:
    assert _bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_bearer_token_scheme_is_case_insensitive() -> None:
    assert _bearer_token("bearer abc.def.ghi") == "abc.def.ghi"


@pytest.mark.parametrize("value", [None, "", "Basic xxx", "Bearer", "Bearer "])
def test_bearer_token_invalid(value) -> None:
    with pytest.raises(AuthError):
        _bearer_token(value)
