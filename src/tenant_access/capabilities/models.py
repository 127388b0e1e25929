from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# flags a client record carries; the tenant-default fallback copies exactly these
CLIENT_FLAGS = (
    "canCreateUsers",
    "canCreateProducts",
    "canCreateCustomers",
    "canCreateVendors",
    "canCreateCompanies",
    "canCreateInventory",
    "canUpdateCompanies",
    "canSendInvoiceEmail",
    "canSendInvoiceWhatsapp",
)

# per-user entry flags served by the effective user permissions endpoint
USER_FLAGS = (
    "canCreateInventory",
    "canCreateCustomers",
    "canCreateVendors",
    "canCreateCompanies",
    "canUpdateCompanies",
    "canSendInvoiceEmail",
    "canSendInvoiceWhatsapp",
    "canCreateSaleEntries",
    "canCreatePurchaseEntries",
    "canCreateJournalEntries",
    "canCreateReceiptEntries",
    "canCreatePaymentEntries",
    "canShowCustomers",
    "canShowVendors",
)

LIMITS = ("maxCompanies", "maxUsers", "maxInventories")


class Capabilities(BaseModel):
    """
    Fixed-schema capability record for one principal.

    Payload keys outside the catalog are dropped on validation. Each field is
    read on its own: a flag is granted only by a literal JSON true, and a limit
    only by a non-negative integer. Anything else reads as False or 0, so one
    malformed value never takes the rest of the record down with it.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    can_create_users: bool = False
    can_create_products: bool = False
    can_create_customers: bool = False
    can_create_vendors: bool = False
    can_create_companies: bool = False
    can_create_inventory: bool = False
    can_update_companies: bool = False
    can_send_invoice_email: bool = False
    can_send_invoice_whatsapp: bool = False
    can_create_sale_entries: bool = False
    can_create_purchase_entries: bool = False
    can_create_journal_entries: bool = False
    can_create_receipt_entries: bool = False
    can_create_payment_entries: bool = False
    can_show_customers: bool = False
    can_show_vendors: bool = False

    max_companies: int = 0
    max_users: int = 0
    max_inventories: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_or_deny(cls, value: Any, info) -> Any:
        if info.field_name.startswith("max_"):
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                return value
            return 0
        return value is True

    @classmethod
    def from_payload(cls, payload: Any, keys: tuple[str, ...] | None = None) -> "Capabilities":
        if not isinstance(payload, dict):
            return cls()
        if keys is not None:
            payload = {k: payload.get(k) for k in keys}
        return cls.model_validate(payload)

    def is_granted(self, key: str) -> bool:
        """True only for a catalog flag that is exactly True."""
        field_name = _FLAG_FIELDS.get(key)
        if field_name is None:
            return False
        return getattr(self, field_name) is True

    def limit(self, key: str) -> int:
        field_name = _LIMIT_FIELDS.get(key)
        if field_name is None:
            return 0
        return getattr(self, field_name)

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


_FLAG_FIELDS: dict[str, str] = {
    info.alias or name: name
    for name, info in Capabilities.model_fields.items()
    if name.startswith("can_")
}
_LIMIT_FIELDS: dict[str, str] = {
    info.alias or name: name
    for name, info in Capabilities.model_fields.items()
    if name.startswith("max_")
}

CAPABILITY_FLAGS: tuple[str, ...] = tuple(_FLAG_FIELDS)
