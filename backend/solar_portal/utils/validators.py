"""
Validators — Rule-based checks for payment input and contact details.
"""
import re


def validate_payment_fields(amount, description) -> tuple[bool, str]:
    """Amount must be a positive integer; description must be non-blank."""
    if amount is None or description is None or not str(description).strip():
        return False, "Amount and description are required"
    if isinstance(amount, bool) or not isinstance(amount, int):
        return False, "Amount must be an integer"
    if amount <= 0:
        return False, "Amount must be a positive integer"
    return True, "Valid"


def normalize_mobile(mobile: str | None) -> str:
    """Strip separators and convert +98/0098 prefixes to the local 09xx form."""
    if not mobile:
        return ""
    cleaned = re.sub(r"[\s\-()]", "", mobile.strip())
    if cleaned.startswith("+98"):
        cleaned = "0" + cleaned[3:]
    elif cleaned.startswith("0098"):
        cleaned = "0" + cleaned[4:]
    return cleaned
