"""
Core data model for timestamped feedback.

Comments are immutable once created: the remote store assigns the id and
the display strings, and the client only ever appends or removes whole
comments. Markers are derived from comments and never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .categories import CommentCategory


class LibraryScope(str, Enum):
    """Visibility of a saved library snippet."""
    PERSONAL = "personal"
    SHARED = "shared"


@dataclass(frozen=True)
class Comment:
    """A grader comment anchored to a playback position (whole seconds)."""
    id: int
    timestamp: int
    body: str
    category: CommentCategory = CommentCategory.GENERAL
    author_display_name: str = ""
    created_display: str = ""

    def __post_init__(self):
        if self.timestamp < 0:
            raise ValueError(f"timestamp must be non-negative, got {self.timestamp}")
        object.__setattr__(self, "category", CommentCategory.normalize(self.category))

    def to_dict(self) -> dict:
        """Wire representation used by the remote service."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "body": self.body,
            "category": self.category.value,
            "authorDisplayName": self.author_display_name,
            "createdDisplay": self.created_display,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Comment":
        return cls(
            id=int(data["id"]),
            timestamp=int(data["timestamp"]),
            body=data.get("body") or "",
            category=CommentCategory.normalize(data.get("category")),
            author_display_name=data.get("authorDisplayName") or "",
            created_display=data.get("createdDisplay") or "",
        )


@dataclass(frozen=True)
class LibraryItem:
    """A reusable snippet from the grader's comment library."""
    id: int
    text: str
    category: CommentCategory = CommentCategory.GENERAL
    scope: LibraryScope = LibraryScope.PERSONAL
    owned_by_current_user: bool = True

    def __post_init__(self):
        object.__setattr__(self, "category", CommentCategory.normalize(self.category))
        object.__setattr__(self, "scope", LibraryScope(self.scope))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category.value,
            "scope": self.scope.value,
            "ownedByCurrentUser": self.owned_by_current_user,
        }

    @classmethod
    def from_dict(cls, data: dict, scope: Optional[LibraryScope] = None) -> "LibraryItem":
        return cls(
            id=int(data["id"]),
            text=data.get("text") or "",
            category=CommentCategory.normalize(data.get("category")),
            scope=scope or LibraryScope(data.get("scope", LibraryScope.PERSONAL.value)),
            owned_by_current_user=bool(data.get("ownedByCurrentUser", False)),
        )


@dataclass(frozen=True)
class LibrarySnapshot:
    """The personal and shared lists, cached and invalidated as one unit."""
    personal: tuple[LibraryItem, ...] = ()
    shared: tuple[LibraryItem, ...] = ()

    def all_items(self) -> list[LibraryItem]:
        return [*self.personal, *self.shared]

    def to_dict(self) -> dict:
        return {
            "personal": [item.to_dict() for item in self.personal],
            "shared": [item.to_dict() for item in self.shared],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LibrarySnapshot":
        return cls(
            personal=tuple(
                LibraryItem.from_dict(item, LibraryScope.PERSONAL)
                for item in data.get("personal", [])
            ),
            shared=tuple(
                LibraryItem.from_dict(item, LibraryScope.SHARED)
                for item in data.get("shared", [])
            ),
        )


@dataclass
class PlayerState:
    """Last values polled from the player; process-local and transient."""
    current_time_seconds: float = 0.0
    duration_seconds: float = 0.0
    is_ready: bool = False

    @property
    def duration_known(self) -> bool:
        return self.duration_seconds > 0


@dataclass
class Marker:
    """Projection of a comment onto the timeline (``ratio`` in [0, 1])."""
    comment_id: int
    timestamp: int
    ratio: float
    category: str
    color: str
    tooltip: str
    css_classes: list[str] = field(default_factory=list)

    @property
    def left_percent(self) -> float:
        return self.ratio * 100
