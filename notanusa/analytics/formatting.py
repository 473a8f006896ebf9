"""Display formatting in the Indonesian locale."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def format_idr(amount: Union[Decimal, int, float]) -> str:
    """
    Rupiah with dot thousands separators and no fraction digits.

    1500000 -> 'Rp 1.500.000', -1500 -> '-Rp 1.500'
    """
    value = Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,}".replace(",", ".")
    return f"{sign}Rp {digits}"


def format_percent(value: float) -> str:
    """42.857 -> '42.9%'"""
    return f"{value:.1f}%"
