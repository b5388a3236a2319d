from __future__ import annotations

import re
from typing import Any, Callable, Dict, Mapping, Union

from invoicegen.core.currency import DEFAULT_CURRENCY, fmt_currency, fmt_date
from invoicegen.model.document import DocumentRecord

# Recognized tokens -> (record attribute, formatter kind)
PLACEHOLDERS: Dict[str, tuple[str, str]] = {
    "company_name": ("company_name", "text"),
    "address": ("address", "text"),
    "attention": ("attention", "text"),
    "telephone": ("telephone", "text"),
    "invoice_number": ("document_number", "text"),
    "invoice_date": ("document_date", "date"),
    "quotation_number": ("document_number", "text"),
    "quotation_date": ("document_date", "date"),
    "subtotal": ("subtotal", "money"),
    "total": ("total", "money"),
}

# Raw mapping keys accepted for each record attribute
_MAPPING_ALIASES = {
    "document_number": ("document_number", "invoice_number", "quotation_number"),
    "document_date": ("document_date", "invoice_date", "quotation_date"),
}

_TOKEN_RE = re.compile(r"\{(" + "|".join(PLACEHOLDERS) + r")\}")

Record = Union[DocumentRecord, Mapping[str, Any]]


def _field(record: Record, attr: str) -> Any:
    if isinstance(record, DocumentRecord):
        return getattr(record, attr, None)
    for key in _MAPPING_ALIASES.get(attr, (attr,)):
        if record.get(key) is not None:
            return record.get(key)
    return None


def placeholder_values(record: Record, currency: str = DEFAULT_CURRENCY) -> Dict[str, str]:
    """Formatted value for every recognized token name."""
    formatters: Dict[str, Callable[[Any], str]] = {
        "text": lambda v: "" if v is None else str(v),
        "date": fmt_date,
        "money": lambda v: fmt_currency(v, currency),
    }
    return {
        name: formatters[kind](_field(record, attr))
        for name, (attr, kind) in PLACEHOLDERS.items()
    }


def resolve(content: str, record: Record, currency: str = DEFAULT_CURRENCY) -> str:
    """Replace every `{token}` in content with the record's formatted field.

    Single pass: substituted values are never rescanned. Unknown tokens stay verbatim.
    """
    return substitute(content, placeholder_values(record, currency))


def substitute(content: str, values: Mapping[str, str]) -> str:
    """Replace recognized tokens using already formatted values."""
    if not content or "{" not in content:
        return content or ""
    return _TOKEN_RE.sub(lambda m: values[m.group(1)], content)
