from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from tenant_access.auth.models import Role

Section = Literal["admin", "workspace"]

MASTER_ONLY = frozenset({Role.MASTER})
BYPASS = frozenset({Role.MASTER, Role.ADMIN})
WORKSPACE_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.CUSTOMER, Role.USER})
TENANT_OWNERS = frozenset({Role.MASTER, Role.CUSTOMER})


@dataclass(frozen=True)
class Gate:
    """Allowed when the role is listed, else when any listed flag is granted."""

    roles: frozenset[Role] = frozenset()
    capabilities: tuple[str, ...] = ()


@dataclass(frozen=True)
class Feature:
    key: str
    label: str
    path: str | None
    section: Section
    gate: Gate | None
    children: tuple[str, ...] = field(default_factory=tuple)


def _nav(key: str, label: str, path: str | None, section: Section, gate: Gate | None, *children: str) -> Feature:
    return Feature(key=key, label=label, path=path, section=section, gate=gate, children=children)


FEATURES: tuple[Feature, ...] = (
    # master admin menu
    _nav("admin-dashboard", "Dashboard", "/admin/dashboard", "admin", Gate(MASTER_ONLY)),
    _nav("client-management", "Client Management", "/admin/client-management", "admin", Gate(MASTER_ONLY)),
    _nav("admin-companies", "Companies", "/admin/companies", "admin", Gate(MASTER_ONLY)),
    _nav("analytics", "Analytics", "/admin/analytics", "admin", Gate(MASTER_ONLY)),
    _nav("admin-settings", "Settings", "/admin/settings", "admin", Gate(MASTER_ONLY)),
    # workspace menu
    _nav("dashboard", "Dashboard", "/dashboard", "workspace", Gate(WORKSPACE_ROLES)),
    _nav("transactions", "Transactions", "/transactions", "workspace", Gate(WORKSPACE_ROLES)),
    _nav("inventory", "Inventory", "/inventory", "workspace", Gate(BYPASS, ("canCreateInventory",))),
    # company visibility names admin explicitly instead of the bypass set
    _nav(
        "companies",
        "Companies",
        "/companies",
        "workspace",
        Gate(frozenset({Role.ADMIN}), ("canCreateCompanies", "canUpdateCompanies")),
    ),
    _nav("users", "Users", "/users", "workspace", Gate(BYPASS, ("canCreateUsers",))),
    _nav("reports", "Reports", "/reports", "workspace", Gate(WORKSPACE_ROLES), "profit-loss", "balance-sheet"),
    _nav("profit-loss", "Profit & Loss", "/reports/profit-loss", "workspace", Gate(WORKSPACE_ROLES)),
    _nav("balance-sheet", "Balance Sheet", "/reports/balance-sheet", "workspace", Gate(WORKSPACE_ROLES)),
    _nav("ledger", "Ledger", "/ledger", "workspace", Gate(WORKSPACE_ROLES), "receivables", "payables"),
    _nav("receivables", "Receivables", "/ledger/receivables", "workspace", Gate(WORKSPACE_ROLES)),
    _nav("payables", "Payables", "/ledger/payables", "workspace", Gate(WORKSPACE_ROLES)),
    # feature surfaces without their own menu entry
    _nav("customers", "Customers", None, "workspace", Gate(TENANT_OWNERS, ("canShowCustomers",))),
    _nav("vendors", "Vendors", None, "workspace", Gate(TENANT_OWNERS, ("canShowVendors",))),
    _nav("sale-entries", "Sales", None, "workspace", Gate(TENANT_OWNERS, ("canCreateSaleEntries",))),
    _nav("purchase-entries", "Purchases", None, "workspace", Gate(TENANT_OWNERS, ("canCreatePurchaseEntries",))),
    _nav("receipt-entries", "Receipts", None, "workspace", Gate(TENANT_OWNERS, ("canCreateReceiptEntries",))),
    _nav("payment-entries", "Payments", None, "workspace", Gate(TENANT_OWNERS, ("canCreatePaymentEntries",))),
    _nav("journal-entries", "Journals", None, "workspace", Gate(TENANT_OWNERS, ("canCreateJournalEntries",))),
    _nav("invoice-email", "Send Invoice via Email", None, "workspace", Gate(BYPASS, ("canSendInvoiceEmail",))),
    _nav(
        "invoice-whatsapp",
        "Send Invoice via WhatsApp",
        None,
        "workspace",
        Gate(BYPASS, ("canSendInvoiceWhatsapp",)),
    ),
)

FEATURES_BY_KEY: dict[str, Feature] = {f.key: f for f in FEATURES}

# submenu entries are listed under their parent, not at the top level
CHILD_KEYS: frozenset[str] = frozenset(child for f in FEATURES for child in f.children)


def get_feature(key: str | None) -> Feature | None:
    if not key:
        return None
    return FEATURES_BY_KEY.get(key.strip().lower().replace(" ", "-"))
