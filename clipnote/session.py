"""
Grading session: the context object for one grading view.

A host page builds a session from its initialization payload and hands it
the page regions, the remote service and the player SDK. Every component
(player adapter, timeline, comment and library controllers) receives the
session instead of reaching for module state, so several sessions can run
side by side.
"""

from typing import Callable, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .categories import CategoryRegistry
from .comments import CommentController, CommentStore
from .config import get_poll_interval_ms
from .errors import CollaboratorMissing, InitializationError, RemoteError
from .library import LibraryController
from .logging import get_logger
from .player import PlayerAdapter, SdkLoader
from .remote import RemoteService
from .scheduling import InFlight, InlineDispatcher, RequestHandle, ThreadScheduler
from .schemas import CommentPayload
from .timeline import TimelineRenderer
from .ui import HostPage, Notifier

logger = get_logger(__name__)

MISSING_ASSIGNMENT_MESSAGE = "Assignment ID missing. Cannot add comments."
INVALID_PAYLOAD_MESSAGE = "Invalid grading data. Cannot load comments."


class CategoryDefinition(BaseModel):
    label: str
    color: str


class InitPayload(BaseModel):
    """What the host page passes when it starts a grading view."""

    mediaId: str = ""
    submissionId: int = 0
    assignmentId: int = 0
    comments: list[CommentPayload] = Field(default_factory=list)
    categoryDefinitions: dict[str, CategoryDefinition] = Field(default_factory=dict)
    readOnly: bool = False
    courseId: int = 0


class GradingSession:
    """Wires the player, timeline, comment store and library for one view."""

    def __init__(
        self,
        payload: InitPayload,
        page: HostPage,
        remote: RemoteService,
        loader: Optional[SdkLoader] = None,
        notifier: Optional[Notifier] = None,
        scheduler=None,
        dispatcher=None,
        poll_interval_ms: Optional[int] = None,
    ):
        if not payload.readOnly and not payload.assignmentId:
            raise InitializationError(MISSING_ASSIGNMENT_MESSAGE)

        self.payload = payload
        self.page = page
        self.remote = remote
        self.notifier = notifier or Notifier()
        self.scheduler = scheduler or ThreadScheduler()
        self.dispatcher = dispatcher or InlineDispatcher()
        self.in_flight = InFlight()
        self.closed = False

        definitions = {k: v.model_dump() for k, v in payload.categoryDefinitions.items()}
        self.registry = CategoryRegistry(definitions or None)
        self.store = CommentStore(c.to_comment() for c in payload.comments)

        interval = poll_interval_ms or get_poll_interval_ms()
        self.player = PlayerAdapter(loader, page, self.scheduler, interval)
        self.timeline = TimelineRenderer(self.registry, self.player.seek)
        self.comments = CommentController(self)
        self.library = LibraryController(self)

        self.player.on_duration_known(self._on_duration_known)
        self.player.on_tick(self._on_tick)
        self._drain_task = None
        if hasattr(self.dispatcher, "drain"):
            self._drain_task = self.scheduler.call_every(interval, self.dispatcher.drain)

    # -------------------------------------------------------------------------
    # Context
    # -------------------------------------------------------------------------

    @property
    def read_only(self) -> bool:
        return self.payload.readOnly

    @property
    def submission_id(self) -> int:
        return self.payload.submissionId

    @property
    def assignment_id(self) -> int:
        return self.payload.assignmentId

    @property
    def course_id(self) -> int:
        return self.payload.courseId

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> "GradingSession":
        """Render the comment list and bring up the player."""
        self.comments.render_list()
        if not self.payload.mediaId:
            logger.debug("No media id in payload; player disabled")
            return self
        try:
            self.player.initialize(self.payload.mediaId)
        except CollaboratorMissing as e:
            logger.debug("%s; continuing without a player", e)
        return self

    def close(self) -> None:
        """Tear down: stop polling and drop any responses still in flight."""
        self.closed = True
        self.player.stop()
        if self._drain_task is not None:
            self._drain_task.cancel()
        logger.debug("Session for submission %s closed", self.submission_id)

    def _on_duration_known(self, duration: float) -> None:
        self.timeline.initialize(self.page.timeline, duration, self.store.snapshot())

    def _on_tick(self, current: float, duration: float) -> None:
        self.timeline.update_playhead(current, duration)

    def dispatch(
        self,
        operation: str,
        call: Callable[[], object],
        on_success: Callable[[object], None],
        on_failure: Callable[[RemoteError], None],
        flag: Optional[str] = None,
    ) -> RequestHandle:
        """
        Send a remote call whose response is dropped if the session closed meanwhile.

        ``flag`` names an in-flight flag the caller already holds. It is
        released when the request settles, or straight away if submitting
        the request raises.
        """
        try:
            handle = self.dispatcher.submit(
                operation, call, on_success, on_failure,
                is_relevant=lambda: not self.closed,
            )
        except Exception:
            if flag is not None:
                self.in_flight.release(flag)
            raise
        if flag is not None:
            handle.add_done_callback(lambda: self.in_flight.release(flag))
        return handle


def init(
    data: dict,
    page: HostPage,
    remote: RemoteService,
    loader: Optional[SdkLoader] = None,
    notifier: Optional[Notifier] = None,
    **kwargs,
) -> Optional[GradingSession]:
    """
    Start a grading view from a raw initialization payload.

    Returns None (after telling the user) when the payload cannot support
    the requested mode.
    """
    notifier = notifier or Notifier()
    try:
        payload = InitPayload.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("Rejected initialization payload: %s", e)
        notifier.alert("Error", INVALID_PAYLOAD_MESSAGE)
        return None
    try:
        session = GradingSession(payload, page, remote, loader=loader, notifier=notifier, **kwargs)
    except InitializationError as e:
        notifier.alert("Error", str(e))
        return None
    return session.start()
