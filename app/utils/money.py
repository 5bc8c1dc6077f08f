from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "AUD": "$",
    "EUR": "€",
    "GBP": "£",
}

_STRIP_RE = re.compile(r"[$€£,\s]")


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def format_currency(cents: int, currency: str = "USD") -> str:
    """12345 -> '$123.45', -5 -> '-$0.05'."""
    code = (currency or "USD").upper()
    symbol = _CURRENCY_SYMBOLS.get(code)
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    body = f"{whole:,}.{frac:02d}"
    if symbol is None:
        return f"{sign}{body} {code}"
    return f"{sign}{symbol}{body}"


def parse_currency(text: str | None) -> int:
    """
    Parse a user-typed dollar amount into cents.
    '$1,234.56' -> 123456, '-12.345' -> -1235. Malformed input yields 0.
    """
    cleaned = _STRIP_RE.sub("", text or "")
    if not cleaned:
        return 0
    try:
        dollars = Decimal(cleaned)
    except InvalidOperation:
        return 0
    if not dollars.is_finite():
        return 0
    return int((dollars * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
