from __future__ import annotations

from dataclasses import dataclass, field

from tenant_access.auth.models import Principal, Role
from tenant_access.auth.roles import normalize_role
from tenant_access.capabilities.models import Capabilities
from tenant_access.visibility.features import CHILD_KEYS, FEATURES, Feature, Section, get_feature


def can_show(role: str | Role | None, capabilities: Capabilities | None, feature_key: str) -> bool:
    """
    Decide whether a gated surface is visible.

    A listed role wins outright and is never revoked by a missing or false
    flag. Everyone else needs a loaded capability set with one of the gate's
    flags set to True. Unknown features and features without a gate are
    hidden.
    """
    feature = get_feature(feature_key)
    if feature is None or feature.gate is None:
        return False
    return _allowed(normalize_role(role), capabilities, feature)


def _allowed(role: Role | None, capabilities: Capabilities | None, feature: Feature) -> bool:
    gate = feature.gate
    if gate is None or role is None:
        return False
    if role in gate.roles:
        return True
    if capabilities is None:
        return False
    return any(capabilities.is_granted(key) for key in gate.capabilities)


def visible_features(
    role: str | Role | None,
    capabilities: Capabilities | None,
    section: Section,
) -> list[Feature]:
    canonical = normalize_role(role)
    return [f for f in FEATURES if f.section == section and _allowed(canonical, capabilities, f)]


@dataclass(frozen=True)
class NavEntry:
    key: str
    label: str
    path: str
    children: tuple["NavEntry", ...] = field(default_factory=tuple)


def build_navigation(principal: Principal | None, capabilities: Capabilities | None) -> list[NavEntry]:
    """Sidebar entries: master gets the admin menu, everyone else the workspace."""
    if principal is None:
        return []
    section: Section = "admin" if principal.role is Role.MASTER else "workspace"
    visible = {f.key: f for f in visible_features(principal.role, capabilities, section)}

    menu: list[NavEntry] = []
    for feature in visible.values():
        if feature.path is None or feature.key in CHILD_KEYS:
            continue
        children = tuple(
            NavEntry(key=c.key, label=c.label, path=c.path)
            for c in (visible.get(k) for k in feature.children)
            if c is not None and c.path is not None
        )
        menu.append(NavEntry(key=feature.key, label=feature.label, path=feature.path, children=children))
    return menu


def is_active(path: str, pathname: str) -> bool:
    # /dashboard and /admin/dashboard must not light each other up
    if path == "/dashboard" and pathname.startswith("/admin"):
        return False
    if path == "/admin/dashboard" and pathname == "/dashboard":
        return False
    if pathname == path:
        return True
    return path != "/" and pathname.startswith(path)
