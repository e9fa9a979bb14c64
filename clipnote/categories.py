"""
Comment categories and the registry that maps them to labels and colours.

The registry is supplied once when a grading session starts and is the only
place any rendering path looks up a category's label or colour. Unknown or
missing keys always resolve to ``general``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional


class CommentCategory(str, Enum):
    """Fixed classification of a comment's intent."""
    GENERAL = "general"
    PRAISE = "praise"
    CORRECTION = "correction"
    SUGGESTION = "suggestion"
    QUESTION = "question"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "CommentCategory":
        """Return the matching category, or GENERAL for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.GENERAL


@dataclass(frozen=True)
class CategoryInfo:
    label: str
    color: str

    def to_dict(self) -> dict:
        return {"label": self.label, "color": self.color}


DEFAULT_CATEGORIES: dict[str, CategoryInfo] = {
    CommentCategory.GENERAL.value: CategoryInfo("General", "#6c757d"),
    CommentCategory.PRAISE.value: CategoryInfo("Praise", "#28a745"),
    CommentCategory.CORRECTION.value: CategoryInfo("Correction", "#dc3545"),
    CommentCategory.SUGGESTION.value: CategoryInfo("Suggestion", "#0d6efd"),
    CommentCategory.QUESTION.value: CategoryInfo("Question", "#6f42c1"),
}

FALLBACK = DEFAULT_CATEGORIES[CommentCategory.GENERAL.value]


class CategoryRegistry:
    """Lookup table of category key -> :class:`CategoryInfo`."""

    def __init__(self, definitions: Optional[Mapping[str, object]] = None):
        self._entries: dict[str, CategoryInfo] = {}
        source = DEFAULT_CATEGORIES if definitions is None else definitions
        for key, info in source.items():
            if isinstance(info, CategoryInfo):
                self._entries[key] = info
            else:
                self._entries[key] = CategoryInfo(
                    label=str(info.get("label", key)),
                    color=str(info.get("color", FALLBACK.color)),
                )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def key_for(self, key: Optional[str]) -> str:
        """Resolve a raw key to the registered key used for rendering."""
        if isinstance(key, CommentCategory):
            key = key.value
        if key and key in self._entries:
            return key
        return CommentCategory.GENERAL.value

    def get(self, key: Optional[str]) -> CategoryInfo:
        """Label and colour for ``key``, falling back to the general entry."""
        resolved = self.key_for(key)
        return self._entries.get(resolved, FALLBACK)

    def items(self) -> list[tuple[str, CategoryInfo]]:
        return list(self._entries.items())

    def to_dict(self) -> dict:
        return {key: info.to_dict() for key, info in self._entries.items()}
