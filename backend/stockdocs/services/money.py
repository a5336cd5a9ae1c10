# Overview: Conversion of external decimal amounts and tax classes to cents / basis points.

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


_PERCENT_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*%")
_NUMBER_RE = re.compile(r"(\d+(?:[.,]\d+)?)")

_NAMED_TAX_CLASSES = {
    "standard": 2000,
    "standard-rate": 2000,
    "reduced": 1000,
    "reduced-rate": 1000,
    "zero": 0,
    "zero-rate": 0,
}


def to_cents(value: Any) -> int:
    """
    "12.34" / 12.34 / None -> 1234 / 1234 / 0, rounded half-up.

    Raises:
        ValueError: not a number
    """
    if value in (None, ""):
        return 0
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise ValueError(f"Invalid amount {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent_to_bps(text: str) -> int:
    pct = Decimal(text.replace(",", "."))
    return int((pct * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def tax_rate_from_class(tax_class: str | None) -> int:
    """
    VAT rate (basis points) for a shop tax class.

    standard -> 2000, reduced -> 1000, zero / exempt -> 0, a class carrying
    a percentage ("TVA 5.5%") -> that percentage. Empty or unknown -> 0.
    """
    text = (tax_class or "").strip().lower()
    if not text or "exon" in text or "exempt" in text:
        return 0

    match = _PERCENT_RE.search(text)
    if match:
        return _percent_to_bps(match.group(1))

    if text in _NAMED_TAX_CLASSES:
        return _NAMED_TAX_CLASSES[text]

    match = _NUMBER_RE.search(text)
    return _percent_to_bps(match.group(1)) if match else 0
