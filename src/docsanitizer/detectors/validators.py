"""Structural checks applied to raw rule matches before they become detections.

Every validator takes the matched string and returns a bool. They never raise
and never touch anything outside their argument.
"""

import re

_NON_DIGITS = re.compile(r"\D")
_WHITESPACE = re.compile(r"\s+")
_IBAN_SHAPE = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]+$")
_EMAIL_DOMAIN = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def luhn_check(value: str) -> bool:
    """Validate a card-like number with the Luhn checksum (13 to 19 digits)."""
    digits = _NON_DIGITS.sub("", value)
    if len(digits) < 13 or len(digits) > 19:
        return False

    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def iban_check(value: str) -> bool:
    """Structural IBAN check: country code, check digits, 15-34 characters."""
    compact = _WHITESPACE.sub("", value).upper()
    if len(compact) < 15 or len(compact) > 34:
        return False
    return _IBAN_SHAPE.match(compact) is not None


def email_check(value: str) -> bool:
    if ".." in value or value.startswith(".") or value.endswith("."):
        return False

    parts = value.split("@")
    if len(parts) != 2:
        return False

    local, domain = parts
    if not local or len(local) > 64 or len(domain) > 253:
        return False
    return _EMAIL_DOMAIN.match(domain) is not None


def ipv4_check(value: str) -> bool:
    """Four dot-separated octets in 0-255, without leading zeros."""
    parts = value.split(".")
    if len(parts) != 4:
        return False

    for part in parts:
        if not part.isascii() or not part.isdigit():
            return False
        if len(part) > 1 and part.startswith("0"):
            return False
        if int(part) > 255:
            return False
    return True
