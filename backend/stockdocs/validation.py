from __future__ import annotations

from datetime import date
from typing import Any

from .errors import ValidationError
from .time_utils import parse_iso_date


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# 100% expressed in basis points
MAX_TAX_RATE_BPS = 10_000


def coerce_int(value: Any, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion for JSON input.

    Rejects floats, booleans, decimals-in-strings and scientific notation so
    that "2.5" units or "1e3" cents never sneak into a document.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    return result


def coerce_str(value: Any, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    result = str(value).strip()
    if max_length is not None and len(result) > max_length:
        raise ValidationError(f"Value exceeds {max_length} characters")
    return result or None


def coerce_date(value: Any, field: str) -> date | None:
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")


def parse_line_items(raw_lines: Any) -> list[dict]:
    """
    Validate + normalize incoming line items.

    Each item needs a name and a quantity; prices default to 0 and tax to 0 bps.
    product_id is kept as a string since it is the external shop's identifier.
    Returns plain dicts; amounts are computed by the document service.
    """
    if not raw_lines or not isinstance(raw_lines, list):
        raise ValidationError("At least one line item is required")

    lines: list[dict] = []
    for index, raw in enumerate(raw_lines, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Line {index} must be an object")

        name = coerce_str(raw.get("name") or raw.get("product_name"), max_length=255)
        if not name:
            raise ValidationError(f"Line {index}: name is required")

        product_id = raw.get("product_id")
        lines.append({
            "product_id": str(product_id).strip() if product_id not in (None, "") else None,
            "sku": coerce_str(raw.get("sku") or raw.get("product_sku"), max_length=64),
            "name": name,
            "quantity": coerce_int(raw.get("quantity"), f"Line {index}: quantity", minimum=0),
            "unit_price_cents": coerce_int(
                raw.get("unit_price_cents", 0), f"Line {index}: unit_price_cents",
                minimum=0, maximum=MAX_PRICE_CENTS,
            ),
            "tax_rate_bps": coerce_int(
                raw.get("tax_rate_bps", 0), f"Line {index}: tax_rate_bps",
                minimum=0, maximum=MAX_TAX_RATE_BPS,
            ),
        })
    return lines


PAYMENT_CASH = "cash"
PAYMENT_TRANSFER = "transfer"
PAYMENT_CHEQUE = "cheque"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_TRANSFER, PAYMENT_CHEQUE)

# Substrings seen in free-text payment titles (shop gateways, French labels)
_TRANSFER_MARKERS = ("transfer", "virement", "bacs")
_CHEQUE_MARKERS = ("cheque", "chèque", "check")
_CASH_MARKERS = ("cash", "espèces", "especes")


def classify_payment_method(value: Any) -> str | None:
    """
    Map a payment method label to cash / transfer / cheque.

    Returns None when the label matches no channel.
    """
    text = (coerce_str(value) or "").lower()
    if not text:
        return None
    if any(marker in text for marker in _TRANSFER_MARKERS):
        return PAYMENT_TRANSFER
    if any(marker in text for marker in _CHEQUE_MARKERS):
        return PAYMENT_CHEQUE
    if any(marker in text for marker in _CASH_MARKERS):
        return PAYMENT_CASH
    return None
