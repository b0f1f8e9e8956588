from __future__ import annotations

from decimal import Decimal


def format_currency(value: Decimal) -> str:
    paise = value.quantize(Decimal("0.01"))
    return f"{paise:,.2f}"


def format_weight(value: Decimal) -> str:
    milligrams = value.quantize(Decimal("0.001"))
    return f"{milligrams:.3f} g"
