# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Phone number helpers for keypad input and speech.
"""

from typing import Optional

from hotline.models.domain import digits_only


def normalize_override_number(entered: str | None) -> Optional[str]:
    """
    Turn keypad digits into an E.164 North American number.
    Accepts 10 digits, or 11 digits with a leading country code 1.
    Returns None for anything else.
    """
    cleaned = digits_only(entered)
    if len(cleaned) == 10:
        return "+1" + cleaned
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return "+" + cleaned
    return None


def spell_out(phone: str | None) -> str:
    """'2025551234' -> '2 0 2 5 5 5 1 2 3 4', so TTS reads digit by digit."""
    return " ".join(digits_only(phone))
