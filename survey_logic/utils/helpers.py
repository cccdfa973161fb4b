"""
Utility helpers for the survey logic engine

Simple utility functions for ID generation and display.
"""

import uuid


def generate_session_id(short=True):
    """
    Generate unique session (response) identifier

    Args:
        short (bool): If True, return 8-char hex. If False, return full UUID.

    Returns:
        str: Session ID

    Examples:
        >>> generate_session_id()
        'a3f7e2b9'

        >>> generate_session_id(short=False)
        'a3f7e2b9c1d2e3f4a5b6c7d8e9f0a1b2'
    """
    full_id = uuid.uuid4().hex
    return full_id[:8] if short else full_id


def format_answer(value):
    """
    Render an answer value for console display

    Examples:
        >>> format_answer(['A', 'B'])
        'A, B'
        >>> format_answer(None)
        '(no answer)'
    """
    if value is None or value == "" or value == []:
        return "(no answer)"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def parse_console_answer(raw):
    """
    Parse a console answer line.

    Empty input -> None, comma-separated input -> list of stripped items,
    anything else -> stripped string. Numbers stay strings; the evaluator
    coerces them for GREATER_THAN / LESS_THAN.

    Examples:
        >>> parse_console_answer('Option A, Option B')
        ['Option A', 'Option B']
        >>> parse_console_answer('  42 ')
        '42'
        >>> parse_console_answer('') is None
        True
    """
    text = raw.strip()
    if not text:
        return None
    if "," in text:
        return [part.strip() for part in text.split(",") if part.strip()]
    return text
