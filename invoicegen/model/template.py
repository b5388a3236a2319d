from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

# A4 at 96 DPI; every template is laid out on this canvas
CANVAS_WIDTH = 794
CANVAS_HEIGHT = 1123

TEXT = "text"
CUSTOMER_BLOCK = "customerBlock"
INVOICE_INFO = "invoiceInfo"
ITEMS_TABLE = "itemsTable"
TOTALS_BLOCK = "totalsBlock"
REMARKS_BLOCK = "remarksBlock"
IMAGE = "image"
LINE = "line"

ELEMENT_TYPES = (
    TEXT,
    CUSTOMER_BLOCK,
    INVOICE_INFO,
    ITEMS_TABLE,
    TOTALS_BLOCK,
    REMARKS_BLOCK,
    IMAGE,
    LINE,
)

# Boxes without inner padding; every other type gets BOX_PADDING on each side
UNPADDED_TYPES = frozenset({IMAGE, LINE, ITEMS_TABLE})
BOX_PADDING = 5.0

# JSON key (template builder) -> dataclass attribute
_JSON_KEYS = {
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "fontStyle": "font_style",
    "textDecoration": "text_decoration",
    "lineHeight": "line_height",
    "aspectRatio": "aspect_ratio",
    "originalWidth": "original_width",
    "originalHeight": "original_height",
}
_ATTR_KEYS = {v: k for k, v in _JSON_KEYS.items()}
_GEOMETRY = ("x", "y", "width", "height")


@dataclass(frozen=True)
class Element:
    id: str
    type: str
    x: float
    y: float
    width: float
    height: float

    # text props
    font_size: float = 12
    font_weight: str = "normal"
    font_style: str = "normal"
    text_decoration: str = "none"
    color: Optional[str] = None
    line_height: Optional[float] = None
    content: str = ""

    # image props
    src: Optional[str] = None
    aspect_ratio: Optional[float] = None
    original_width: Optional[float] = None
    original_height: Optional[float] = None

    # line props
    thickness: Optional[float] = None

    @property
    def padding(self) -> float:
        return 0.0 if self.type in UNPADDED_TYPES else BOX_PADDING

    @property
    def bold(self) -> bool:
        return str(self.font_weight).lower() in ("bold", "bolder", "600", "700", "800", "900")

    @property
    def italic(self) -> bool:
        return str(self.font_style).lower() in ("italic", "oblique")

    @property
    def underline(self) -> bool:
        return "underline" in str(self.text_decoration or "").lower()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Element":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = _JSON_KEYS.get(key, key)
            if attr in known and value is not None:
                kwargs[attr] = value
        for name in _GEOMETRY:
            try:
                kwargs[name] = float(data.get(name, 0) or 0)
            except (TypeError, ValueError):
                raise ValueError(f"Element {data.get('id')!r}: {name} must be a number") from None
        kwargs["id"] = str(data.get("id", ""))
        kwargs["type"] = str(data.get("type", ""))
        if "font_size" in kwargs:
            kwargs["font_size"] = float(kwargs["font_size"])
        if kwargs.get("content") is None:
            kwargs["content"] = ""
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[_ATTR_KEYS.get(f.name, f.name)] = value
        return out


@dataclass(frozen=True)
class Template:
    elements: Tuple[Element, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        raw = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            raise ValueError("Template data must contain an 'elements' list")
        return cls(elements=tuple(Element.from_dict(e) for e in raw if isinstance(e, dict)))

    def to_dict(self) -> Dict[str, Any]:
        return {"elements": [e.to_dict() for e in self.elements]}

    def find(self, element_type: str) -> List[Element]:
        return [e for e in self.elements if e.type == element_type]

    @property
    def items_table(self) -> Optional[Element]:
        tables = self.find(ITEMS_TABLE)
        return tables[0] if tables else None
