# editions/units.py
"""
Monetary units and addresses.

All amounts inside the ledger are integers in the smallest currency
unit (wei). Ether strings are only accepted at the edges (CLI, config).
"""

import re
from decimal import Decimal, InvalidOperation

WEI_PER_ETHER = 10 ** 18

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def parse_ether(amount: str | int | Decimal) -> int:
    """
    Convert an ether amount to wei.

    Args:
        amount: Ether as a decimal string ("0.5"), int or Decimal

    Returns:
        Integer amount in wei

    Raises:
        ValueError: if the amount is negative, malformed, or has more
            than 18 decimal places
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid ether amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid ether amount: {amount!r}")
    if value < 0:
        raise ValueError(f"Negative ether amount: {amount!r}")
    wei = value * WEI_PER_ETHER
    if wei != wei.to_integral_value():
        raise ValueError(f"Too many decimal places: {amount!r}")
    return int(wei)


def format_ether(wei: int) -> str:
    """Format a wei amount as an ether string without trailing zeros."""
    value = Decimal(wei) / WEI_PER_ETHER
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def is_address(value: str) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(value: str) -> str:
    """Validate a hex address and return its lowercase form."""
    if not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value.lower()
