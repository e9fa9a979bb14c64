"""Media identifiers for submitted video links."""

import re
from typing import Optional

_YOUTUBE_ID_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts)/|.*[?&]v=)|youtu\.be/)"
    r"([^\"&?/\s]{11})",
    re.IGNORECASE,
)


def extract_video_id(url: str) -> Optional[str]:
    """
    Pull the 11-character video id out of a YouTube URL.

    Handles ``watch?v=``, ``youtu.be/``, ``embed/``, ``v/`` and ``shorts/``
    forms; returns None for anything else.
    """
    if not url:
        return None
    match = _YOUTUBE_ID_RE.search(url)
    return match.group(1) if match else None
