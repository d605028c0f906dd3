"""
pt-BR number formatting used in status messages and budget text.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENTS = Decimal("0.01")


def format_count(value: int) -> str:
    """1234567 -> '1.234.567'"""
    return f"{int(value):,}".replace(",", ".")


def format_decimal(value: Union[Decimal, int, float], places: int = 2) -> str:
    """Decimal with '.' thousands and ',' decimal separator."""
    quantized = Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    text = f"{quantized:,.{places}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_brl(value: Union[Decimal, int, float]) -> str:
    return f"R$ {format_decimal(value)}"


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
