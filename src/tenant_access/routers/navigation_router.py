from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from tenant_access.auth.dependencies import get_access_session, get_principal
from tenant_access.auth.models import Principal
from tenant_access.configs.logging_config import get_logger
from tenant_access.session.lifecycle import AccessSession
from tenant_access.utils.response import success
from tenant_access.visibility.evaluator import can_show
from tenant_access.visibility.features import get_feature

log = get_logger(__name__)

router = APIRouter(tags=["navigation"])


def _principal_view(principal: Principal) -> dict:
    return {
        "role": principal.role.value,
        "name": principal.identity.name,
        "username": principal.identity.username,
        "email": principal.identity.email,
        "initials": principal.identity.initials,
        "tenant": asdict(principal.tenant) if principal.tenant else None,
    }


@router.get("/navigation")
async def navigation(
    principal: Principal = Depends(get_principal),
    session: AccessSession = Depends(get_access_session),
) -> dict:
    store = session.store
    caps = session.capabilities
    menu = [asdict(entry) for entry in session.navigation()]
    log.info("navigation.built role=%s entries=%s", principal.role.value, len(menu))
    return success(
        {
            "principal": _principal_view(principal),
            "capabilities": caps.as_payload() if caps else None,
            "capabilities_error": store.error if store else None,
            "menu": menu,
        }
    )


@router.get("/features/{feature_key}")
async def feature_visibility(
    feature_key: str,
    principal: Principal = Depends(get_principal),
    session: AccessSession = Depends(get_access_session),
) -> dict:
    feature = get_feature(feature_key)
    visible = can_show(principal.role, session.capabilities, feature_key)
    return success({"key": feature.key if feature else feature_key, "visible": visible})
