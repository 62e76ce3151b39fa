"""
Locale-aware parsing of user-entered numbers.

Form posts carry quantities and amounts as strings formatted for the active
locale ("1,234.50" in English, "1.234,50" in German). Both helpers strip the
locale's grouping separator and normalise the decimal separator using Django's
format machinery before converting to ``Decimal``.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from django.utils.formats import sanitize_separators

ZERO = Decimal("0")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    try:
        parsed = Decimal(sanitize_separators(value))
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def parse_number(value: Any) -> Decimal:
    """Parse a quantity (units, hours). Blank or malformed input yields zero."""
    parsed = _to_decimal(value)
    return ZERO if parsed is None else parsed


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse an optional money amount. Blank or malformed input yields None."""
    return _to_decimal(value)
