from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import json

from invoicegen.core.currency import to_decimal

INVOICE = "invoice"
QUOTATION = "quotation"


@dataclass(frozen=True)
class LineItem:
    description: str
    unit_price: float
    quantity: int = 1
    # unit_price * quantity, computed upstream
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        unit_price = float(to_decimal(data.get("unit_price", 0) or 0))
        try:
            quantity = int(data.get("quantity", 1) or 1)
        except (TypeError, ValueError):
            quantity = 1
        total = data.get("total")
        return cls(
            description=str(data.get("description", "") or ""),
            unit_price=unit_price,
            quantity=quantity,
            total=float(to_decimal(total)) if total is not None else unit_price * quantity,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "total": self.total,
        }


@dataclass(frozen=True)
class DocumentRecord:
    """An invoice or quotation bound into a template at render time."""

    items: Tuple[LineItem, ...] = field(default_factory=tuple)
    company_name: Optional[str] = None
    address: Optional[str] = None
    attention: Optional[str] = None
    telephone: Optional[str] = None
    document_number: Optional[str] = None
    # date, datetime or ISO string as delivered by the API
    document_date: Any = None
    subtotal: Optional[float] = None
    total: Optional[float] = None
    kind: str = INVOICE

    @property
    def is_quotation(self) -> bool:
        return self.kind == QUOTATION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRecord":
        """Build from the REST shape of an invoice or quotation row.

        `items` may be a list of dicts or the JSON string stored by the backend.
        """
        raw_items = data.get("items") or []
        if isinstance(raw_items, str):
            raw_items = json.loads(raw_items) if raw_items.strip() else []
        items = tuple(
            it if isinstance(it, LineItem) else LineItem.from_dict(it)
            for it in raw_items
        )

        kind = data.get("kind")
        if kind is None:
            kind = QUOTATION if "quotation_number" in data else INVOICE
        number = data.get("document_number") or data.get("invoice_number") or data.get("quotation_number")
        date_val = data.get("document_date") or data.get("invoice_date") or data.get("quotation_date")

        def _money(key: str) -> Optional[float]:
            v = data.get(key)
            return None if v is None or v == "" else float(to_decimal(v))

        return cls(
            items=items,
            company_name=data.get("company_name"),
            address=data.get("address"),
            attention=data.get("attention"),
            telephone=data.get("telephone"),
            document_number=str(number) if number is not None else None,
            document_date=date_val,
            subtotal=_money("subtotal"),
            total=_money("total"),
            kind=str(kind),
        )
