from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from tenant_access.auth.models import Role
from tenant_access.auth.roles import normalize_role
from tenant_access.configs.logging_config import get_logger
from tenant_access.utils.time_utils import epoch_seconds

log = get_logger(__name__)

# token shapes issued by the master, client and user login endpoints
ROLE_CLAIMS = ("role", "userRole", "r")


def read_claims(token: str | None) -> dict[str, Any] | None:
    """
    Read the payload without verifying the signature.

    The backing API verifies every request; this side only needs the role and
    expiry to decide what to render, so a bad token simply reads as None.
    """
    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        log.info("jwt.claims.unreadable error=%s", str(e))
        return None
    if not isinstance(claims, dict):
        return None
    return claims


def role_from_token(token: str | None) -> Role | None:
    claims = read_claims(token)
    if claims is None:
        return None
    for name in ROLE_CLAIMS:
        value = claims.get(name)
        if isinstance(value, str) and value:
            return normalize_role(value)
    return None


def token_expiry(token: str | None) -> float | None:
    claims = read_claims(token)
    if claims is None:
        return None
    exp = claims.get("exp")
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        return float(exp)
    return None


def token_expired(token: str | None, now: float | None = None) -> bool:
    claims = read_claims(token)
    if claims is None:
        return True
    exp = token_expiry(token)
    if exp is None:
        return False
    current = epoch_seconds() if now is None else now
    return exp <= current
