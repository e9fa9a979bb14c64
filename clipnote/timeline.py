"""
Timeline strip under the player: one marker per comment plus a playhead.

Marker positions are ``timestamp / duration`` clamped to [0, 1]. Nothing is
drawn until the duration is known. Comments at the same (or nearly the
same) second simply overlap; no offsetting is applied.
"""

from typing import Callable, Iterable, Optional

from .categories import CategoryRegistry
from .logging import get_logger
from .models import Comment, Marker
from .ui import ClickEvent, MarkerNode, TimelineContainer
from .views import marker_tooltip

logger = get_logger(__name__)

SeekFn = Callable[[float, bool], None]


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def marker_ratio(timestamp: float, duration: float) -> float:
    """Normalized position of ``timestamp`` on a timeline of ``duration`` seconds."""
    if duration <= 0:
        raise ValueError("duration must be positive")
    return clamp(timestamp / duration)


def build_marker(comment: Comment, duration: float, registry: CategoryRegistry) -> Marker:
    key = registry.key_for(comment.category.value)
    info = registry.get(key)
    return Marker(
        comment_id=comment.id,
        timestamp=comment.timestamp,
        ratio=marker_ratio(comment.timestamp, duration),
        category=key,
        color=info.color,
        tooltip=marker_tooltip(comment, registry),
        css_classes=["clipnote-timeline-marker", f"clipnote-timeline-marker-{key}"],
    )


class TimelineRenderer:
    """Draws markers into a :class:`TimelineContainer` and handles click-to-seek."""

    def __init__(self, registry: CategoryRegistry, seek: SeekFn):
        self.registry = registry
        self.seek = seek
        self.container: Optional[TimelineContainer] = None
        self.duration: float = 0.0
        self._bound_to: Optional[TimelineContainer] = None

    @property
    def is_initialized(self) -> bool:
        return self.container is not None and self.duration > 0

    def initialize(
        self,
        container: Optional[TimelineContainer],
        duration: float,
        comments: Iterable[Comment],
    ) -> bool:
        """(Re)build all markers. Does nothing until ``duration`` is positive."""
        if duration <= 0:
            return False
        if container is None:
            logger.debug("Timeline container not found; markers disabled")
            return False

        self.container = container
        self.duration = duration
        container.clear()
        for comment in comments:
            self.add_marker(comment)

        if self._bound_to is not container:
            container.bind_click(self._on_container_click)
            self._bound_to = container
        logger.debug("Timeline initialized: %d markers over %.1fs", len(container.nodes), duration)
        return True

    def _on_container_click(self, event: ClickEvent) -> None:
        if event.target_marker_id is not None:
            return  # markers handle their own clicks
        if not self.is_initialized or self.container.width <= 0:
            return
        ratio = clamp(event.x / self.container.width)
        self.seek(ratio * self.duration, False)

    def add_marker(self, comment: Comment) -> Optional[Marker]:
        if self.container is None or self.duration <= 0:
            return None
        marker = build_marker(comment, self.duration, self.registry)

        def on_click(event: ClickEvent, timestamp: int = comment.timestamp) -> None:
            event.stop_propagation()
            self.seek(timestamp, True)

        self.container.append(MarkerNode(marker=marker, on_click=on_click))
        return marker

    def remove_marker(self, comment_id: int) -> bool:
        """Remove a marker; removing an unknown id is a no-op."""
        if self.container is None:
            return False
        return self.container.remove(comment_id)

    def update_playhead(self, current: float, duration: Optional[float] = None) -> Optional[float]:
        duration = duration if duration is not None else self.duration
        if self.container is None or not duration or duration <= 0:
            return None
        percent = clamp(current / duration) * 100
        self.container.playhead_percent = percent
        return percent

    @property
    def markers(self) -> list[Marker]:
        if self.container is None:
            return []
        return [node.marker for node in self.container.nodes.values()]

    def marker_for(self, comment_id: int) -> Optional[Marker]:
        if self.container is None:
            return None
        node = self.container.nodes.get(comment_id)
        return node.marker if node else None
