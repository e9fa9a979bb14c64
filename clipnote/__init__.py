"""
clipnote - Timestamped video feedback

Grading core for reviewing a submitted video:
- Comments anchored to playback positions, shown as timeline markers
- A polled player adapter driving the playhead and live clock
- A reusable comment library (personal and course-shared)
- A reference Flask service for the remote comment operations
"""

__version__ = "0.1.0"

from .categories import CategoryRegistry, CommentCategory
from .models import Comment, LibraryItem, LibraryScope, Marker, PlayerState
from .session import GradingSession, InitPayload, init
from .timecode import format_clock, format_time, parse_time
from .timeline import TimelineRenderer, marker_ratio

__all__ = [
    "CategoryRegistry",
    "CommentCategory",
    "Comment",
    "LibraryItem",
    "LibraryScope",
    "Marker",
    "PlayerState",
    "GradingSession",
    "InitPayload",
    "init",
    "format_clock",
    "format_time",
    "parse_time",
    "TimelineRenderer",
    "marker_ratio",
]
