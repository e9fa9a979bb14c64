"""
Client-side comment store and the add/delete protocol.

The store mirrors the remote list and only changes after the remote
service confirms a write: a new comment is appended as the server returned
it (with its id, author name and date), and a comment is removed only once
the server reports the delete succeeded. The timeline and the rendered
list are updated in the same callback as the store.
"""

from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from .categories import CommentCategory
from .errors import ValidationError
from .logging import get_logger
from .markup import require_text
from .models import Comment
from .scheduling import RequestHandle
from .views import render_comment, render_empty_state

if TYPE_CHECKING:
    from .session import GradingSession

logger = get_logger(__name__)

EMPTY_COMMENT_MESSAGE = "Please enter a comment."
CONFIRM_DELETE_MESSAGE = "Are you sure you want to delete this comment?"


class CommentStore:
    """Comments in the order the server returned them (ascending timestamp)."""

    def __init__(self, comments: Iterable[Comment] = ()):
        self._comments: list[Comment] = list(comments)

    def __iter__(self) -> Iterator[Comment]:
        return iter(list(self._comments))

    def __len__(self) -> int:
        return len(self._comments)

    def __contains__(self, comment_id: object) -> bool:
        return self.get(comment_id) is not None

    @property
    def is_empty(self) -> bool:
        return not self._comments

    def get(self, comment_id) -> Optional[Comment]:
        for comment in self._comments:
            if comment.id == comment_id:
                return comment
        return None

    def append(self, comment: Comment) -> None:
        self._comments.append(comment)

    def remove(self, comment_id: int) -> Optional[Comment]:
        comment = self.get(comment_id)
        if comment is not None:
            self._comments.remove(comment)
        return comment

    def snapshot(self) -> list[Comment]:
        return list(self._comments)


class CommentController:
    """User actions on comments, wired to one grading session."""

    def __init__(self, session: "GradingSession"):
        self.session = session

    @property
    def store(self) -> CommentStore:
        return self.session.store

    def render_list(self) -> None:
        """Render every stored comment into the page's comment list."""
        view = self.session.page.comment_list
        if view is None:
            return
        can_delete = not self.session.read_only
        view.render(
            [(c.id, render_comment(c, self.session.registry, can_delete)) for c in self.store],
            render_empty_state(),
        )

    def seek_to(self, comment_id: int) -> bool:
        """Timestamp badge click: jump to the comment and play."""
        comment = self.store.get(comment_id)
        if comment is None:
            return False
        self.session.player.seek(comment.timestamp, autoplay=True)
        return True

    # -------------------------------------------------------------------------
    # Add
    # -------------------------------------------------------------------------

    def add_comment(
        self,
        timestamp: Optional[int] = None,
        category: Optional[str] = None,
        body: Optional[str] = None,
        attachment_ref: Optional[int] = None,
    ) -> Optional[RequestHandle]:
        """
        Submit a new comment.

        Arguments left as None are read from the compose form. The recorded
        position comes from the live player whenever it can answer, so a
        stale form value never wins over the actual playback position.

        Returns the request handle, or None when nothing was sent.
        """
        session = self.session
        if session.read_only:
            logger.debug("add_comment ignored in read-only session")
            return None

        form = session.page.compose
        if body is None:
            body = form.content if form is not None else ""
        if category is None:
            category = form.category if form is not None else None
        if attachment_ref is None:
            attachment_ref = form.draft_attachment_ref if form is not None else 0
        if timestamp is None:
            timestamp = form.timestamp_input if form is not None else 0

        try:
            body = require_text(body, EMPTY_COMMENT_MESSAGE)
        except ValidationError as e:
            session.notifier.alert("Error", str(e))
            return None

        live = session.player.current_time()
        if live is not None:
            timestamp = live
        timestamp = max(int(timestamp or 0), 0)
        category_key = CommentCategory.normalize(category).value

        if not session.in_flight.acquire("add_comment"):
            logger.debug("add_comment already in flight; ignoring")
            return None

        return session.dispatch(
            "add_comment",
            lambda: session.remote.add_comment(
                session.submission_id,
                session.assignment_id,
                timestamp,
                body,
                category_key,
                attachment_ref or 0,
            ),
            self._on_added,
            session.notifier.report,
            flag="add_comment",
        )

    def _on_added(self, comment: Comment) -> None:
        session = self.session
        self.store.append(comment)

        if session.page.comment_list is not None:
            session.page.comment_list.append(
                comment.id, render_comment(comment, session.registry, True)
            )
        session.timeline.add_marker(comment)

        if session.page.compose is not None:
            session.page.compose.clear()
        logger.info("Added comment %s at %ss", comment.id, comment.timestamp)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete_comment(self, comment_id: int) -> Optional[RequestHandle]:
        """Delete a comment after the user confirms. Returns None if nothing was sent."""
        session = self.session
        if session.read_only:
            logger.debug("delete_comment ignored in read-only session")
            return None
        if not session.notifier.confirm(CONFIRM_DELETE_MESSAGE):
            return None

        key = f"delete_comment:{comment_id}"
        if not session.in_flight.acquire(key):
            logger.debug("delete of comment %s already in flight", comment_id)
            return None

        return session.dispatch(
            "delete_comment",
            lambda: session.remote.delete_comment(comment_id),
            lambda _message: self._on_deleted(comment_id),
            session.notifier.report,
            flag=key,
        )

    def _on_deleted(self, comment_id: int) -> None:
        session = self.session
        session.timeline.remove_marker(comment_id)
        self.store.remove(comment_id)

        view = session.page.comment_list
        if view is not None:
            view.remove(comment_id)
            if self.store.is_empty:
                view.show_placeholder(render_empty_state())
        logger.info("Deleted comment %s", comment_id)
