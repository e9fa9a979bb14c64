"""
Headless view state for the grading page.

The host page owns the real widgets; the core talks to these small objects
instead. Each one mirrors a region of the page (compose form, comment list,
timeline strip, library panel) and can be missing, in which case the
feature that depends on it is skipped.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .categories import CommentCategory
from .errors import RejectedError
from .logging import get_logger
from .models import LibraryItem, Marker

logger = get_logger(__name__)


# =============================================================================
# Notifications
# =============================================================================


class Notifier:
    """User-visible alerts and confirmations. The default only logs."""

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm

    def alert(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)

    def exception(self, error: Exception) -> None:
        logger.error("Request failed: %s", error)

    def confirm(self, message: str) -> bool:
        logger.info("Confirm: %s -> %s", message, self.auto_confirm)
        return self.auto_confirm

    def report(self, error: Exception) -> None:
        """Show a failed remote call: server messages verbatim, anything else generically."""
        if isinstance(error, RejectedError):
            self.alert("Error", error.message)
        else:
            self.exception(error)


# =============================================================================
# Page regions
# =============================================================================


@dataclass
class TextSlot:
    """A text node such as the live clock next to the player."""
    text: str = ""


@dataclass
class ComposeForm:
    """The comment editor, category picker and hidden inputs."""
    content: str = ""
    category: str = CommentCategory.GENERAL.value
    timestamp_input: int = 0
    draft_attachment_ref: int = 0

    def clear(self) -> None:
        self.content = ""
        self.category = CommentCategory.GENERAL.value
        self.timestamp_input = 0
        # Draft areas are single-use; a new one is issued for the next comment
        self.draft_attachment_ref = 0


@dataclass
class ClickEvent:
    """A click on the timeline strip, ``x`` in pixels from its left edge."""
    x: float
    target_marker_id: Optional[int] = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class MarkerNode:
    marker: Marker
    on_click: Optional[Callable[[ClickEvent], None]] = None


class TimelineContainer:
    """The strip under the player holding markers and the playhead."""

    def __init__(self, width: float = 640.0):
        self.width = width
        self.nodes: dict[int, MarkerNode] = {}
        self.playhead_percent: Optional[float] = None
        self._click_handlers: list[Callable[[ClickEvent], None]] = []

    def bind_click(self, handler: Callable[[ClickEvent], None]) -> None:
        self._click_handlers.append(handler)

    @property
    def click_handler_count(self) -> int:
        return len(self._click_handlers)

    def append(self, node: MarkerNode) -> None:
        self.nodes[node.marker.comment_id] = node

    def remove(self, comment_id: int) -> bool:
        return self.nodes.pop(comment_id, None) is not None

    def clear(self) -> None:
        self.nodes.clear()

    def click(self, x: float, marker_id: Optional[int] = None) -> ClickEvent:
        """Deliver a click, bubbling from a marker (if hit) to the strip."""
        event = ClickEvent(x=x, target_marker_id=marker_id)
        node = self.nodes.get(marker_id) if marker_id is not None else None
        if node is not None and node.on_click is not None:
            node.on_click(event)
        if not event.propagation_stopped:
            for handler in list(self._click_handlers):
                handler(event)
        return event


class CommentListView:
    """Rendered comment entries in display order, or the empty placeholder."""

    def __init__(self):
        self.entries: dict[int, str] = {}
        self.placeholder: Optional[str] = None

    def render(self, entries: list[tuple[int, str]], placeholder: str) -> None:
        self.entries = dict(entries)
        self.placeholder = None if entries else placeholder

    def append(self, comment_id: int, html: str) -> None:
        self.placeholder = None
        self.entries[comment_id] = html

    def remove(self, comment_id: int) -> bool:
        return self.entries.pop(comment_id, None) is not None

    def show_placeholder(self, html: str) -> None:
        self.entries.clear()
        self.placeholder = html

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass
class PanelEntry:
    item: LibraryItem
    html: str
    rendered_text: str
    hidden: bool = False


@dataclass
class LibraryPanelView:
    """The slide-down comment library panel."""
    visible: bool = False
    html: str = ""
    entries: list[PanelEntry] = field(default_factory=list)
    active_filter: str = "all"
    search_query: str = ""

    def show(self, html: str, entries: list[PanelEntry]) -> None:
        self.html = html
        self.entries = entries
        self.active_filter = "all"
        self.search_query = ""
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def remove_item(self, item_id: int) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.item.id != item_id]
        return len(self.entries) != before

    def visible_items(self) -> list[LibraryItem]:
        return [e.item for e in self.entries if not e.hidden]


@dataclass
class HostPage:
    """
    The regions a host page rendered for a grading session.

    ``player_element`` is False when the page omitted the player mount
    point; any region left as None is treated as not rendered.
    """
    player_element: bool = True
    time_display: Optional[TextSlot] = None
    timeline: Optional[TimelineContainer] = None
    comment_list: Optional[CommentListView] = None
    compose: Optional[ComposeForm] = None
    library_panel: Optional[LibraryPanelView] = None

    @classmethod
    def full(cls, timeline_width: float = 640.0) -> "HostPage":
        """A page with every region present."""
        return cls(
            player_element=True,
            time_display=TextSlot(),
            timeline=TimelineContainer(timeline_width),
            comment_list=CommentListView(),
            compose=ComposeForm(),
            library_panel=LibraryPanelView(),
        )
