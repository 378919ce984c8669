"""Recipient and amount formatting for order notifications."""

import re
from decimal import ROUND_HALF_UP, Decimal


def normalize_phone(phone, country_code: str = "62", min_length: int = 10) -> str | None:
    """Digits-only phone in international form, or None when it is unusable.

    A leading local trunk digit 0 becomes the country code, and numbers
    typed without any prefix (starting with 8) get the country code
    prepended. Anything shorter than `min_length` digits afterwards is
    rejected.
    """
    digits = re.sub(r"\D", "", str(phone or ""))
    if digits.startswith("0"):
        digits = country_code + digits[1:]
    elif digits.startswith("8"):
        digits = country_code + digits

    if len(digits) < min_length:
        return None
    return digits


def format_rupiah(amount) -> str:
    """Indonesian currency style: `Rp150.000`, `Rp1.250,5`."""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer_part, _, fraction = f"{abs(value):f}".partition(".")
    grouped = f"{int(integer_part):,}".replace(",", ".")
    fraction = fraction.rstrip("0")
    return f"Rp{sign}{grouped}" + (f",{fraction}" if fraction else "")
