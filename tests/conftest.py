"""Shared fixtures for clipnote tests."""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest

from clipnote.categories import CommentCategory
from clipnote.errors import RejectedError, TransportError
from clipnote.models import Comment, LibraryItem, LibraryScope, LibrarySnapshot
from clipnote.player import SdkLoader
from clipnote.scheduling import InlineDispatcher, ManualScheduler
from clipnote.session import GradingSession, InitPayload
from clipnote.ui import HostPage, Notifier


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() side effects between tests."""
    yield
    pkg_logger = logging.getLogger("clipnote")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    for name in ("urllib3", "werkzeug"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    dirpath = tempfile.mkdtemp()
    yield Path(dirpath)
    shutil.rmtree(dirpath)


# =============================================================================
# Fakes
# =============================================================================


class FakePlayer:
    """Stand-in for the embedded player capability."""

    def __init__(self, current_time=0.0, duration=0.0):
        self.current_time = current_time
        self.duration = duration
        self.failing: set[str] = set()
        self.seeks: list[tuple] = []
        self.play_count = 0

    def _maybe_fail(self, name):
        if name in self.failing:
            raise RuntimeError(f"{name} not available yet")

    def get_current_time(self):
        self._maybe_fail("get_current_time")
        return self.current_time

    def get_duration(self):
        self._maybe_fail("get_duration")
        return self.duration

    def seek_to(self, seconds, allow_seek_ahead):
        self._maybe_fail("seek_to")
        self.seeks.append((seconds, allow_seek_ahead))

    def play(self):
        self._maybe_fail("play")
        self.play_count += 1


class FakeSdk:
    """Platform SDK that loads on demand and hands out one FakePlayer."""

    def __init__(self, loaded=True, player=None):
        self.loaded = loaded
        self.load_calls = 0
        self._on_loaded = None
        self.player = player or FakePlayer()
        self.created: list[str] = []
        self.callbacks = {}

    def is_loaded(self):
        return self.loaded

    def load(self, on_loaded):
        self.load_calls += 1
        self._on_loaded = on_loaded

    def finish_load(self):
        self.loaded = True
        self._on_loaded()

    def create_player(self, media_id, on_ready, on_error, on_state_change):
        self.created.append(media_id)
        self.callbacks = {"ready": on_ready, "error": on_error, "state": on_state_change}
        return self.player

    def fire_ready(self):
        self.callbacks["ready"]()

    def fire_error(self, data):
        self.callbacks["error"](data)


class RecordingNotifier(Notifier):
    """Notifier that records what the user would have seen."""

    def __init__(self, confirm_answer=True):
        super().__init__(auto_confirm=confirm_answer)
        self.alerts: list[tuple[str, str]] = []
        self.exceptions: list[Exception] = []
        self.confirmations: list[str] = []

    def alert(self, title, message):
        self.alerts.append((title, message))

    def exception(self, error):
        self.exceptions.append(error)

    def confirm(self, message):
        self.confirmations.append(message)
        return self.auto_confirm


class FakeRemote:
    """In-memory remote service recording every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.next_comment_id = 100
        self.next_item_id = 500
        self.library = LibrarySnapshot()
        self.failure = None

    def fail_next(self, error):
        self.failure = error

    def _record(self, *call):
        self.calls.append(call)
        if self.failure is not None:
            error, self.failure = self.failure, None
            raise error

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    def add_comment(self, submission_id, assignment_id, timestamp, body, category,
                    draft_attachment_ref=0):
        self._record("add_comment", submission_id, assignment_id, timestamp, body,
                     category, draft_attachment_ref)
        self.next_comment_id += 1
        return Comment(
            id=self.next_comment_id,
            timestamp=timestamp,
            body=body,
            category=CommentCategory.normalize(category),
            author_display_name="Grace Grader",
            created_display="Monday, 19 October 2026, 10:00 AM",
        )

    def delete_comment(self, comment_id):
        self._record("delete_comment", comment_id)
        return "Comment deleted successfully."

    def get_library(self, assignment_id, course_id):
        self._record("get_library", assignment_id, course_id)
        return self.library

    def save_library_item(self, assignment_id, body, category, course_id=0, existing_item_id=0):
        self._record("save_library_item", assignment_id, body, category, course_id,
                     existing_item_id)
        if existing_item_id:
            return existing_item_id
        self.next_item_id += 1
        return self.next_item_id

    def delete_library_item(self, assignment_id, item_id):
        self._record("delete_library_item", assignment_id, item_id)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_sdk():
    return FakeSdk()


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def sample_comments():
    return [
        {"id": 1, "timestamp": 30, "body": "<p>Good intro</p>", "category": "praise",
         "authorDisplayName": "Grace Grader", "createdDisplay": "yesterday"},
        {"id": 2, "timestamp": 90, "body": "<p>Audio drops here</p>", "category": "correction",
         "authorDisplayName": "Grace Grader", "createdDisplay": "yesterday"},
    ]


@pytest.fixture
def library_snapshot():
    return LibrarySnapshot(
        personal=(
            LibraryItem(id=11, text="<p>Nice</p>", category=CommentCategory.PRAISE,
                        scope=LibraryScope.PERSONAL, owned_by_current_user=True),
        ),
        shared=(
            LibraryItem(id=21, text="<p>Fix this</p>", category=CommentCategory.CORRECTION,
                        scope=LibraryScope.SHARED, owned_by_current_user=False),
        ),
    )


@pytest.fixture
def make_session(fake_sdk, fake_remote, notifier, scheduler):
    """Build and start a session wired to fakes; extra kwargs override payload fields."""

    def factory(page=None, dispatcher=None, ready=True, **payload_fields):
        data = {
            "mediaId": "dQw4w9WgXcQ",
            "submissionId": 7,
            "assignmentId": 3,
            "comments": [],
            "readOnly": False,
            "courseId": 5,
        }
        data.update(payload_fields)
        session = GradingSession(
            InitPayload.model_validate(data),
            page or HostPage.full(timeline_width=1000),
            fake_remote,
            loader=SdkLoader(fake_sdk),
            notifier=notifier,
            scheduler=scheduler,
            dispatcher=dispatcher or InlineDispatcher(),
            poll_interval_ms=500,
        )
        session.start()
        if ready:
            fake_sdk.fire_ready()
        return session

    return factory


@pytest.fixture
def transport_error():
    return TransportError("Could not reach comment service: timed out", "add_comment")


@pytest.fixture
def rejected_error():
    return RejectedError("Permission denied", "delete_comment")
