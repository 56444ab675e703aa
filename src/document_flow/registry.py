from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .errors import UnmappedTypeError
from .models import Status

FALLBACK_ICON = "document"
FALLBACK_STATUS: Status = "neutral"


@dataclass(frozen=True, slots=True)
class ObjectType:
    """Display information for one business object type code."""

    code: str
    name: str
    icon: str
    status: Status = FALLBACK_STATUS


OBJECT_TYPES: dict[str, ObjectType] = {
    t.code: t
    for t in (
        ObjectType("12", "Appointment", "appointment", "neutral"),
        ObjectType("30", "Quote", "sales-quote", "warning"),
        ObjectType("64", "Lead", "leads", "neutral"),
        ObjectType("72", "Opportunity", "opportunity", "success"),
        ObjectType("80", "Sales Order", "sales-order", "success"),
        ObjectType("86", "Phone Call", "phone", "neutral"),
        ObjectType("90", "Outbound Delivery", "shipping-status", "warning"),
        ObjectType("100", "Invoice", "document", "success"),
        ObjectType("110", "Accounting Doc", "account", "error"),
        ObjectType("542", "Task", "task", "neutral"),
        ObjectType("2054", "Visit", "visits", "neutral"),
        ObjectType("2059", "Sales Order", "sales-order", "success"),
        ObjectType("2886", "Case", "customer-and-contacts", "warning"),
    )
}

# Host application routing keys used for quickview / list / quick create.
ROUTING_KEYS: dict[str, str] = {
    "12": "appointment",
    "30": "sales-quote",
    "64": "lead",
    "72": "guidedselling",
    "80": "sales-order",
    "86": "phone",
    "90": "delivery",
    "100": "invoice",
    "110": "accounting",
    "542": "task",
    "2054": "visit",
    "2059": "sales-order",
    "2886": "case",
}


class TypeRegistry:
    def __init__(
        self,
        object_types: Mapping[str, ObjectType] | None = None,
        routing_keys: Mapping[str, str] | None = None,
    ):
        self._types = dict(OBJECT_TYPES if object_types is None else object_types)
        self._routing = dict(ROUTING_KEYS if routing_keys is None else routing_keys)

    def is_known(self, code: str) -> bool:
        return code in self._types

    def lookup(self, code: str) -> ObjectType:
        """Return display info for `code`; unknown codes get a synthetic "Type {code}" entry."""
        known = self._types.get(code)
        if known is not None:
            return known
        return ObjectType(code=code, name=f"Type {code}", icon=FALLBACK_ICON, status=FALLBACK_STATUS)

    def routing_key(self, code: str) -> str:
        try:
            return self._routing[code]
        except KeyError:
            raise UnmappedTypeError(code) from None


default_registry = TypeRegistry()
