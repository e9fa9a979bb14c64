"""
Comment library: reusable snippets, personal or shared with the course.

The personal and shared lists are fetched together on first open and kept
as one cached snapshot. Any successful write drops the whole snapshot so
the next open fetches again; nothing is patched in place. Filtering works
on what the open panel currently shows and never calls the server.
"""

from typing import TYPE_CHECKING, Optional, Union

from .categories import CommentCategory
from .errors import ValidationError
from .logging import get_logger
from .markup import plain_text, require_text
from .models import LibraryItem, LibraryScope, LibrarySnapshot
from .scheduling import RequestHandle
from .ui import PanelEntry
from .views import render_library_item, render_library_panel, render_scope_prompt

if TYPE_CHECKING:
    from .session import GradingSession

logger = get_logger(__name__)

ALL = "all"
SCOPE_PROMPT_TIMEOUT_MS = 10_000
EMPTY_SAVE_MESSAGE = "Please enter a comment to save."
CONFIRM_DELETE_MESSAGE = "Delete this library comment?"


class LibraryCache:
    """Holds the last fetched snapshot until a write invalidates it."""

    def __init__(self):
        self._snapshot: Optional[LibrarySnapshot] = None

    @property
    def is_fetched(self) -> bool:
        return self._snapshot is not None

    def get(self) -> Optional[LibrarySnapshot]:
        return self._snapshot

    def store(self, snapshot: LibrarySnapshot) -> None:
        self._snapshot = snapshot

    def invalidate(self) -> None:
        self._snapshot = None


class ScopePrompt:
    """
    Pending "save to which library?" choice.

    Nothing is written until :meth:`choose` is called; an expired or
    already answered prompt ignores further choices.
    """

    def __init__(self, controller: "LibraryController", body: str, category: str,
                 existing_item_id: int = 0):
        self.controller = controller
        self.body = body
        self.category = category
        self.existing_item_id = existing_item_id
        self.html = render_scope_prompt(controller.session.course_id)
        self.closed = False
        self.handle: Optional[RequestHandle] = None

    @property
    def choices(self) -> list[LibraryScope]:
        if self.controller.session.course_id > 0:
            return [LibraryScope.PERSONAL, LibraryScope.SHARED]
        return [LibraryScope.PERSONAL]

    def expire(self) -> None:
        if not self.closed:
            logger.debug("Library scope prompt expired")
        self.closed = True

    def choose(self, scope: Union[LibraryScope, str]) -> Optional[RequestHandle]:
        if self.closed:
            logger.debug("Ignoring choice on closed scope prompt")
            return None
        if scope == "course":
            scope = LibraryScope.SHARED
        scope = LibraryScope(scope)
        if scope not in self.choices:
            raise ValueError(f"Scope {scope.value!r} is not available for this course")
        self.closed = True
        self.handle = self.controller._submit_save(self, scope)
        return self.handle


class LibraryController:
    """Open, filter, insert, save and delete library items for one session."""

    def __init__(self, session: "GradingSession"):
        self.session = session
        self.cache = LibraryCache()
        self.prompt: Optional[ScopePrompt] = None

    @property
    def panel(self):
        return self.session.page.library_panel

    # -------------------------------------------------------------------------
    # Panel
    # -------------------------------------------------------------------------

    def open(self) -> Optional[RequestHandle]:
        """
        Toggle the panel.

        Closes it if open. Otherwise shows the cached snapshot, or fetches
        one first; the returned handle is the fetch, if any.
        """
        session = self.session
        if session.read_only:
            logger.debug("Library ignored in read-only session")
            return None
        panel = self.panel
        if panel is None:
            logger.debug("Library panel not found; library disabled")
            return None

        if panel.visible:
            panel.hide()
            return None

        cached = self.cache.get()
        if cached is not None:
            self._show(cached)
            return None

        if not session.in_flight.acquire("library_fetch"):
            return None
        return session.dispatch(
            "get_library",
            lambda: session.remote.get_library(session.assignment_id, session.course_id),
            self._on_fetched,
            session.notifier.report,
            flag="library_fetch",
        )

    def close(self) -> None:
        if self.panel is not None:
            self.panel.hide()

    def _on_fetched(self, snapshot: LibrarySnapshot) -> None:
        self.cache.store(snapshot)
        self._show(snapshot)

    def _show(self, snapshot: LibrarySnapshot) -> None:
        registry = self.session.registry
        items = list(snapshot.personal)
        if self.session.course_id > 0:
            items.extend(snapshot.shared)
        entries = [
            PanelEntry(
                item=item,
                html=render_library_item(item, registry),
                rendered_text=plain_text(item.text),
            )
            for item in items
        ]
        html = render_library_panel(snapshot, registry, self.session.course_id)
        self.panel.show(html, entries)

    def filter(self, category: str = ALL, query: str = "") -> list[LibraryItem]:
        """
        Hide panel entries that do not match.

        An entry stays visible when its category matches (or ``category`` is
        ``"all"``) and the query is empty or a case-insensitive substring of
        its text.
        """
        panel = self.panel
        if panel is None:
            return []
        category = category or ALL
        needle = (query or "").strip().lower()
        registry = self.session.registry
        for entry in panel.entries:
            type_match = category == ALL or registry.key_for(entry.item.category.value) == category
            text_match = not needle or needle in entry.rendered_text.lower()
            entry.hidden = not (type_match and text_match)
        panel.active_filter = category
        panel.search_query = query or ""
        return panel.visible_items()

    def insert(self, item: Union[LibraryItem, int]) -> bool:
        """Replace the compose area with the item's text and category, then close."""
        if isinstance(item, int):
            found = self._find(item)
            if found is None:
                return False
            item = found
        form = self.session.page.compose
        if form is not None:
            form.content = item.text
            form.category = self.session.registry.key_for(item.category.value)
        self.close()
        return True

    def _find(self, item_id: int) -> Optional[LibraryItem]:
        if self.panel is not None:
            for entry in self.panel.entries:
                if entry.item.id == item_id:
                    return entry.item
        cached = self.cache.get()
        if cached is not None:
            for item in cached.all_items():
                if item.id == item_id:
                    return item
        return None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(
        self,
        body: Optional[str] = None,
        category: Optional[str] = None,
        existing_item_id: int = 0,
    ) -> Optional[ScopePrompt]:
        """
        Start saving the compose content (or ``body``) to the library.

        Returns the scope prompt the user must answer; the write is only
        sent once a scope is chosen.
        """
        session = self.session
        if session.read_only:
            return None
        form = session.page.compose
        if body is None:
            body = form.content if form is not None else ""
        if category is None:
            category = form.category if form is not None else None

        try:
            body = require_text(body, EMPTY_SAVE_MESSAGE)
        except ValidationError as e:
            session.notifier.alert("Error", str(e))
            return None

        if self.prompt is not None:
            self.prompt.expire()
        prompt = ScopePrompt(self, body, CommentCategory.normalize(category).value, existing_item_id)
        self.prompt = prompt
        session.scheduler.call_later(SCOPE_PROMPT_TIMEOUT_MS, prompt.expire)
        return prompt

    def _submit_save(self, prompt: ScopePrompt, scope: LibraryScope) -> Optional[RequestHandle]:
        session = self.session
        if self.prompt is prompt:
            self.prompt = None
        if not session.in_flight.acquire("library_save"):
            return None
        course_id = session.course_id if scope == LibraryScope.SHARED else 0
        return session.dispatch(
            "save_library_item",
            lambda: session.remote.save_library_item(
                session.assignment_id,
                prompt.body,
                prompt.category,
                course_id,
                prompt.existing_item_id,
            ),
            self._on_saved,
            session.notifier.report,
            flag="library_save",
        )

    def _on_saved(self, item_id: int) -> None:
        self.cache.invalidate()
        self.session.notifier.alert("Saved", "Comment saved to library.")
        logger.info("Saved library item %s", item_id)

    def delete(self, item_id: int) -> Optional[RequestHandle]:
        """Delete a library item after confirmation."""
        session = self.session
        if session.read_only:
            return None
        if not session.notifier.confirm(CONFIRM_DELETE_MESSAGE):
            return None
        key = f"library_delete:{item_id}"
        if not session.in_flight.acquire(key):
            return None
        return session.dispatch(
            "delete_library_item",
            lambda: session.remote.delete_library_item(session.assignment_id, item_id),
            lambda _result: self._on_deleted(item_id),
            session.notifier.report,
            flag=key,
        )

    def _on_deleted(self, item_id: int) -> None:
        self.cache.invalidate()
        panel = self.panel
        if panel is not None and panel.remove_item(item_id):
            remaining = [e.item for e in panel.entries]
            snapshot = LibrarySnapshot(
                personal=tuple(i for i in remaining if i.scope == LibraryScope.PERSONAL),
                shared=tuple(i for i in remaining if i.scope == LibraryScope.SHARED),
            )
            panel.html = render_library_panel(
                snapshot, self.session.registry, self.session.course_id
            )
        logger.info("Deleted library item %s", item_id)
