from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Iterable

DEFAULT_CURRENCY = "RM"


def to_decimal(x: object) -> Decimal:
	"""Best-effort conversion to Decimal via str to avoid binary float artifacts."""
	try:
		return Decimal(str(x))
	except (InvalidOperation, ValueError, TypeError):
		return Decimal("0")


def round_money_dec(x: float | Decimal) -> Decimal:
	"""Round to 2 decimals (half up, like the on-screen preview) and return Decimal."""
	d = to_decimal(x)
	return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def fmt_money(x: float | Decimal, width: Optional[int] = None) -> str:
	"""
	Format monetary value with two decimals and thousands separators.

	If width is provided, return a right-aligned string.
	"""
	s = f"{round_money_dec(x):,.2f}"
	return s.rjust(width) if isinstance(width, int) and width > 0 else s


def fmt_currency(x: object, prefix: str = DEFAULT_CURRENCY) -> str:
	"""'RM 1,234.50' style amount. None resolves to an empty string."""
	if x is None or x == "":
		return ""
	return f"{prefix} {fmt_money(to_decimal(x))}"


def sum_money(values: Iterable[float | Decimal]) -> Decimal:
	"""Accumulate monetary values using Decimal and round once at the end."""
	total = Decimal("0")
	for v in values:
		total += to_decimal(v)
	return round_money_dec(total)


def parse_date(val: object) -> Optional[date]:
	"""Accept date/datetime objects or ISO strings ('2024-01-05', '2024-01-05T10:00:00Z')."""
	if isinstance(val, datetime):
		return val.date()
	if isinstance(val, date):
		return val
	if not isinstance(val, str) or not val.strip():
		return None
	s = val.strip()
	try:
		return date.fromisoformat(s[:10])
	except ValueError:
		return None


def fmt_date(val: object) -> str:
	"""DD/MM/YYYY. Unparseable strings are returned verbatim, None as ''."""
	if val is None:
		return ""
	d = parse_date(val)
	if d is None:
		return str(val)
	return d.strftime("%d/%m/%Y")
