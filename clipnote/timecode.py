"""
Conversion between playback positions in seconds and display strings.

Comment badges and tooltips use ``MM:SS`` below one hour and ``HH:MM:SS``
from one hour on. The live clock next to the player always shows
``MM:SS`` with an unbounded minute field.
"""

import math
import re

_TIMECODE_RE = re.compile(r"^\s*(\d+)(?::(\d{1,2}))?(?::(\d{1,2}))?\s*$")


def _whole_seconds(seconds: float) -> int:
    if seconds is None or (isinstance(seconds, float) and math.isnan(seconds)):
        raise ValueError("seconds must be a number")
    if seconds < 0:
        raise ValueError(f"seconds must be non-negative, got {seconds}")
    return int(math.floor(seconds))


def format_time(seconds: float) -> str:
    """
    Format a playback position as ``MM:SS`` or ``HH:MM:SS``.

    Fractional seconds are floored, matching how the player position is
    sampled when a comment is recorded.
    """
    total = _whole_seconds(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_clock(seconds: float) -> str:
    """Format the live player clock (``MM:SS``, minutes not wrapped into hours)."""
    total = _whole_seconds(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def parse_time(text: str) -> int:
    """
    Parse ``SS``, ``MM:SS`` or ``HH:MM:SS`` back to whole seconds.

    Raises:
        ValueError: If the text is not a timecode or a minute/second field
            is out of range.
    """
    match = _TIMECODE_RE.match(text or "")
    if not match:
        raise ValueError(f"Invalid timecode: {text!r}")

    fields = [int(part) for part in match.groups() if part is not None]
    # Every field after the leading one is a sexagesimal digit pair
    if any(value >= 60 for value in fields[1:]):
        raise ValueError(f"Invalid timecode: {text!r}")

    total = 0
    for value in fields:
        total = total * 60 + value
    return total
