"""
Notification events delivered by the listener to a caller-supplied sink.

A sink is any callable that accepts a single notification. There are exactly
three kinds: warnings, track data and errors.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .module_registry import module_registry
from .track_metadata import TrackMetadata

log = module_registry.register_module(
    name="track_metadata",
    description="Published now-playing notifications (artist, album, title)",
    logger_name="track_metadata",
    debug_flag="--debug-metadata",
    category="output",
)


@dataclass(frozen=True)
class WarningNotification:
    """Advisory message, e.g. a redundant start request."""

    message: str


@dataclass(frozen=True)
class DataNotification:
    """A parsed track record and its display text."""

    track: TrackMetadata
    display: str

    @classmethod
    def from_track(cls, track: TrackMetadata) -> "DataNotification":
        return cls(track=track, display=track.display)


@dataclass(frozen=True)
class ErrorNotification:
    """Diagnostic text from the player or a failed spawn."""

    message: str


Notification = Union[WarningNotification, DataNotification, ErrorNotification]
NotificationSink = Callable[[Notification], None]


class LoggingSink:
    """Default sink that writes notifications to the track_metadata logger."""

    def __call__(self, notification: Notification) -> None:
        if isinstance(notification, DataNotification):
            log.info("Now playing: %s", notification.display)
        elif isinstance(notification, WarningNotification):
            log.warning("%s", notification.message)
        elif isinstance(notification, ErrorNotification):
            log.error("%s", notification.message)
        else:
            raise TypeError(f"Unknown notification type: {type(notification).__name__}")


class RecordingSink:
    """Sink that keeps every notification it receives and the latest track.

    Safe to call from the supervisor's dispatcher thread while another thread
    reads the recorded state.
    """

    def __init__(self, forward_to: Optional[NotificationSink] = None):
        self._forward_to = forward_to
        self._lock = threading.Lock()
        self._notifications: List[Notification] = []
        self._latest_track: Optional[TrackMetadata] = None

    def __call__(self, notification: Notification) -> None:
        with self._lock:
            self._notifications.append(notification)
            if isinstance(notification, DataNotification):
                self._latest_track = notification.track
        if self._forward_to:
            self._forward_to(notification)

    @property
    def notifications(self) -> List[Notification]:
        with self._lock:
            return list(self._notifications)

    @property
    def latest_track(self) -> Optional[TrackMetadata]:
        with self._lock:
            return self._latest_track

    def of_type(self, kind: type) -> List[Notification]:
        """Get recorded notifications of one kind, in arrival order."""
        return [n for n in self.notifications if isinstance(n, kind)]

    def clear(self) -> None:
        with self._lock:
            self._notifications.clear()
            self._latest_track = None
