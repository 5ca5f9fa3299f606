"""Arabic-indic digit conversion for price labels."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

WESTERN_DIGITS = "0123456789"
ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

_TO_ARABIC = str.maketrans(WESTERN_DIGITS, ARABIC_INDIC_DIGITS)
_TO_WESTERN = str.maketrans(ARABIC_INDIC_DIGITS, WESTERN_DIGITS)

_CENTS = Decimal("0.01")


def to_arabic_digits(value: Union[str, int, float]) -> str:
    """Replace every Western digit with its Arabic-indic glyph.

    Any other character, including the decimal separator, is kept as is.
    """
    return str(value).translate(_TO_ARABIC)


def from_arabic_digits(value: str) -> str:
    """Inverse of :func:`to_arabic_digits`."""
    return value.translate(_TO_WESTERN)


def format_arabic_price(price: Union[int, float]) -> str:
    """Format a price with two decimals in Arabic-indic digits.

    Rounds the exact binary value of ``price`` half away from zero, so a tie
    such as ``1.125`` becomes ``1.13``.
    """
    cents = Decimal(price).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return to_arabic_digits(f"{cents:f}")
