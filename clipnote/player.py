"""
Adapter around a third-party embedded video player.

The player only pushes lifecycle events (ready, error, state change); the
playback position has to be polled. Once ready, the adapter samples the
player on a fixed interval and reports the duration (when it becomes known
or changes) and every time sample to its listeners.

Any exception raised by the player is treated as transient: the sample is
skipped and retried on the next tick.
"""

import math
from typing import Callable, Optional, Protocol

from .errors import CollaboratorMissing, PlayerNotReady
from .logging import get_logger
from .models import PlayerState
from .timecode import format_clock
from .ui import HostPage

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_MS = 500


class PlayerCapability(Protocol):
    """What the embedded player exposes once constructed."""

    def get_current_time(self) -> float: ...

    def get_duration(self) -> float: ...

    def seek_to(self, seconds: float, allow_seek_ahead: bool) -> None: ...

    def play(self) -> None: ...


class PlayerSdk(Protocol):
    """The platform script that must be loaded before a player can exist."""

    def is_loaded(self) -> bool: ...

    def load(self, on_loaded: Callable[[], None]) -> None: ...

    def create_player(
        self,
        media_id: str,
        on_ready: Callable[[], None],
        on_error: Callable[[object], None],
        on_state_change: Callable[[object], None],
    ) -> PlayerCapability: ...


class SdkLoader:
    """
    Loads a :class:`PlayerSdk` at most once per page.

    Sessions on the same page share one loader; callers arriving while the
    load is in progress are queued and released together.
    """

    def __init__(self, sdk: PlayerSdk):
        self.sdk = sdk
        self._loading = False
        self._waiting: list[Callable[[], None]] = []
        self.load_count = 0

    def ensure_loaded(self, callback: Callable[[], None]) -> None:
        if self.sdk.is_loaded():
            callback()
            return
        self._waiting.append(callback)
        if self._loading:
            return
        self._loading = True
        self.load_count += 1
        logger.debug("Loading player SDK")
        self.sdk.load(self._on_loaded)

    def _on_loaded(self) -> None:
        self._loading = False
        waiting, self._waiting = self._waiting, []
        for callback in waiting:
            callback()


class PlayerAdapter:
    """Owns the player handle, its polled state and the poll loop."""

    def __init__(
        self,
        loader: Optional[SdkLoader],
        page: HostPage,
        scheduler,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ):
        self.loader = loader
        self.page = page
        self.scheduler = scheduler
        self.poll_interval_ms = poll_interval_ms
        self.state = PlayerState()
        self.media_id: Optional[str] = None
        self._player: Optional[PlayerCapability] = None
        self._poll_task = None
        self._duration_listeners: list[Callable[[float], None]] = []
        self._tick_listeners: list[Callable[[float, float], None]] = []
        self.last_error: Optional[object] = None

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def on_duration_known(self, listener: Callable[[float], None]) -> None:
        """Called whenever the duration becomes known or changes."""
        self._duration_listeners.append(listener)

    def on_tick(self, listener: Callable[[float, float], None]) -> None:
        """Called with ``(current_seconds, duration_seconds)`` on each sample."""
        self._tick_listeners.append(listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, media_id: str) -> None:
        """
        Create the player for ``media_id`` once the SDK is available.

        Raises:
            CollaboratorMissing: If the page has no player mount point or no
                SDK was supplied.
        """
        if not self.page.player_element:
            raise CollaboratorMissing(f"Player element not found for media {media_id}")
        if self.loader is None:
            raise CollaboratorMissing("No player SDK available")
        self.media_id = media_id
        self.loader.ensure_loaded(self._create_player)

    def _create_player(self) -> None:
        self._player = self.loader.sdk.create_player(
            self.media_id,
            on_ready=self._on_ready,
            on_error=self._on_error,
            on_state_change=self._on_state_change,
        )

    def _on_ready(self) -> None:
        logger.debug("Player ready")
        self.state.is_ready = True
        self._resolve_duration()
        if self._poll_task is None:
            self._poll_task = self.scheduler.call_every(self.poll_interval_ms, self.tick)

    def _on_error(self, error: object) -> None:
        self.last_error = error
        logger.error("Player error: %s", error)

    def _on_state_change(self, state: object) -> None:
        logger.debug("Player state changed: %s", state)

    def stop(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()

    @property
    def is_ready(self) -> bool:
        return self._player is not None and self.state.is_ready

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def _call(self, name: str, *args):
        """Invoke a player method; raise PlayerNotReady if it cannot answer."""
        method = getattr(self._player, name, None) if self._player is not None else None
        if method is None:
            raise PlayerNotReady(f"Player cannot {name} yet")
        try:
            return method(*args)
        except Exception as e:  # the player raises freely until fully ready
            raise PlayerNotReady(f"Player {name} failed: {e}") from e

    @staticmethod
    def _as_seconds(value) -> Optional[float]:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(seconds) or seconds < 0:
            return None
        return seconds

    def _resolve_duration(self) -> None:
        try:
            duration = self._as_seconds(self._call("get_duration"))
        except PlayerNotReady as e:
            logger.debug("%s; retrying next tick", e)
            return
        if duration and duration > 0 and duration != self.state.duration_seconds:
            self.state.duration_seconds = duration
            for listener in list(self._duration_listeners):
                listener(duration)

    def current_time(self) -> Optional[int]:
        """Current position in whole seconds, or None if the player cannot answer."""
        if not self.is_ready:
            return None
        try:
            seconds = self._as_seconds(self._call("get_current_time"))
        except PlayerNotReady as e:
            logger.debug("%s; retrying next tick", e)
            return None
        if seconds is None:
            return None
        return int(math.floor(seconds))

    def tick(self) -> None:
        """Take one sample: duration, clock text, then listeners."""
        if self._player is None:
            return
        self._resolve_duration()
        current = self.current_time()
        if current is None:
            return
        self.state.current_time_seconds = current

        if self.page.time_display is not None:
            self.page.time_display.text = format_clock(current)
        if self.page.compose is not None:
            self.page.compose.timestamp_input = current

        for listener in list(self._tick_listeners):
            listener(current, self.state.duration_seconds)

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def seek(self, timestamp: float, autoplay: bool = False) -> None:
        """Best-effort seek; failures are logged and ignored."""
        if self._player is None:
            logger.debug("Seek to %s ignored; no player", timestamp)
            return
        try:
            self._call("seek_to", timestamp, True)
        except PlayerNotReady as e:
            logger.debug("%s", e)
        if autoplay:
            try:
                self._call("play")
            except PlayerNotReady as e:
                logger.debug("%s", e)
