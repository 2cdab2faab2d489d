from __future__ import annotations
"""Utility helpers for the self-paced reading engine."""
from typing import Any, Optional, Sequence


def mask_text(text: str, mask_char: str) -> str:
    """Replace every non-whitespace character with mask_char.

    Length and whitespace positions are preserved so the masked region
    occupies the same width on screen as the revealed one.

    Args:
        text: Region text to mask
        mask_char: Single masking character

    Returns:
        Masked string of the same length
    """
    return ''.join(ch if ch.isspace() else mask_char for ch in text)


def first_char(value: Any, default: str) -> str:
    """Return the first character of a trimmed setting, or default when blank."""
    if value is None:
        return default
    value = str(value).strip()
    return value[0] if value else default


def normalize_choice(value: Any, allowed: Sequence[str], default: str) -> str:
    """Case-insensitive match of a setting against allowed values."""
    if value is None:
        return default
    candidate = ' '.join(str(value).strip().lower().split())
    return candidate if candidate in allowed else default


def parse_bool(value: Any) -> Optional[bool]:
    """Interpret a JSON merge flag; returns None for anything unrecognised."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == 'true':
            return True
        if lowered == 'false':
            return False
    return None
