"""
Input validation utilities
"""
from typing import Any, Optional

# Ticket ids, customer ids and resolution times are INTEGER columns
INT4_MIN = -2_147_483_648
INT4_MAX = 2_147_483_647


def _is_ascii_number(text: str) -> bool:
    # str.isdigit() also accepts superscripts and other digits int() rejects
    return text.isascii() and text.isdecimal()


def validate_ticket_id(ticket_id: str) -> bool:
    """
    Validate ticket ID format

    Args:
        ticket_id: Ticket ID to validate (raw path segment)

    Returns:
        True if the id is a positive integer
    """
    return _is_ascii_number(ticket_id) and int(ticket_id) > 0


def parse_non_negative_int(value: Any, maximum: int = INT4_MAX) -> Optional[int]:
    """
    Coerce a JSON value to a non-negative integer

    Accepts ints and ASCII digit-only strings. Booleans, floats with a
    fractional part and values above `maximum` are rejected.

    Args:
        value: Raw value from a request payload
        maximum: Largest acceptable value

    Returns:
        Parsed integer, or None if the value is not acceptable
    """
    if isinstance(value, bool):
        return None

    parsed: Optional[int] = None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and _is_ascii_number(value.strip()):
        parsed = int(value.strip())

    if parsed is None or parsed < 0 or parsed > maximum:
        return None
    return parsed


def sanitize_input(text: str, max_length: int = 10000) -> str:
    """
    Sanitize user input

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    # Remove null bytes
    text = text.replace('\x00', '')

    # Truncate to max length
    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()
