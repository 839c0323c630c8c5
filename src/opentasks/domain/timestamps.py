"""
Timestamp pattern formatting.

Patterns use the tokens YYYY, MM, DD, HH, mm, ss and SSS (milliseconds);
every other character is copied literally. The default pattern sorts
lexically in chronological order.
"""

import re
from datetime import datetime

DEFAULT_TIMESTAMP_FORMAT = "YYYYMMDD-HHmmss-SSS"

_TOKEN_RE = re.compile(r"YYYY|SSS|MM|DD|HH|mm|ss")


def _render(token: str, moment: datetime) -> str:
    if token == "YYYY":
        return f"{moment.year:04d}"
    if token == "MM":
        return f"{moment.month:02d}"
    if token == "DD":
        return f"{moment.day:02d}"
    if token == "HH":
        return f"{moment.hour:02d}"
    if token == "mm":
        return f"{moment.minute:02d}"
    if token == "ss":
        return f"{moment.second:02d}"
    return f"{moment.microsecond // 1000:03d}"


def format_timestamp(moment: datetime, pattern: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """
    Render ``moment`` using a YYYYMMDD-HHmmss-SSS style pattern.

    Args:
        moment: The time to render
        pattern: Pattern made of the supported tokens and literal characters

    Returns:
        The formatted timestamp
    """
    return _TOKEN_RE.sub(lambda m: _render(m.group(0), moment), pattern)


def has_millisecond_precision(pattern: str) -> bool:
    """True when the pattern renders milliseconds."""
    return "SSS" in pattern
