"""Streams now-playing metadata from ``playerctl --follow`` to a notification sink."""

from typing import List, Optional, Tuple

from .config import ListenerConfig
from .errors import SpawnError
from .listener_state import ListenerState, ListenerStateMachine
from .module_registry import module_registry
from .notifications import (
    DataNotification,
    ErrorNotification,
    LoggingSink,
    Notification,
    NotificationSink,
    WarningNotification,
)
from .process_supervisor import ProcessHandle, ProcessSupervisor
from .track_metadata import METADATA_FORMAT, parse_metadata

log = module_registry.register_module(
    name="listener",
    description="Now-playing listener start/stop and state transitions",
    logger_name="listener",
    debug_flag="--debug-listener",
)

ALREADY_LISTENING_MESSAGE = "Already listening to now playing"
PLAYER_ERROR_PREFIX = "Player error: "


class NowPlayingListener:
    """Runs at most one playerctl follow process and reports what it prints."""

    def __init__(
        self,
        sink: Optional[NotificationSink] = None,
        config: Optional[ListenerConfig] = None,
        supervisor: Optional[ProcessSupervisor] = None,
    ):
        """Initialize listener.

        Args:
            sink: Receives warning, data and error notifications. Defaults to logging them.
            config: Listener configuration
            supervisor: Process supervisor, replaced in tests
        """
        self._config = config or ListenerConfig()
        self._sink = sink or LoggingSink()
        self._supervisor = supervisor or ProcessSupervisor(self._config)
        self._state_machine = ListenerStateMachine(ListenerState.IDLE)
        self._handle: Optional[ProcessHandle] = None
        self._last_exit: Optional[Tuple[Optional[int], Optional[int]]] = None

    @property
    def state(self) -> ListenerState:
        return self._state_machine.current_state

    @property
    def is_listening(self) -> bool:
        return self._state_machine.current_state == ListenerState.ACTIVE

    @property
    def handle(self) -> Optional[ProcessHandle]:
        return self._handle

    @property
    def last_exit(self) -> Optional[Tuple[Optional[int], Optional[int]]]:
        """(exit_code, signal) of the most recent follow process, None before the first exit."""
        return self._last_exit

    def build_args(self) -> List[str]:
        """Arguments for playerctl's metadata follow mode."""
        return ["metadata", "--format", METADATA_FORMAT, "--follow"]

    def request_start(self) -> Optional[ProcessHandle]:
        """
        Start the follow process unless one is already running.

        Returns:
            The new process handle, or None if already listening (a warning
            notification is sent in that case)

        Raises:
            SpawnError: If playerctl could not be started; the listener stays IDLE
        """
        with self._state_machine.lock:
            if self._state_machine.current_state == ListenerState.IDLE:
                handle = self._supervisor.spawn(
                    self._config.executable,
                    self.build_args(),
                    on_stdout=self._on_stdout,
                    on_stderr=self._on_stderr,
                    on_exit=self._on_exit,
                )
                self._handle = handle
                self._state_machine.transition_to(ListenerState.ACTIVE, f"spawned pid {handle.pid}")
                return handle

        log.warning("Start requested while already listening")
        self._notify(WarningNotification(ALREADY_LISTENING_MESSAGE))
        return None

    def start_listening(self) -> Tuple[Optional[ProcessHandle], Optional[SpawnError]]:
        """
        Start listening and report spawn failures instead of raising.

        Returns:
            (handle, None) on success, (None, None) if already listening,
            (None, error) if playerctl could not be started
        """
        try:
            return self.request_start(), None
        except SpawnError as e:
            self._notify(ErrorNotification(f"{PLAYER_ERROR_PREFIX}{e}"))
            return None, e

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Terminate the follow process and wait for the listener to go IDLE.

        When called from a sink, the exit is only processed after the sink
        returns, so the listener is still ACTIVE and False is returned even
        though the process has been terminated.

        Returns:
            True if the listener went from ACTIVE to IDLE, False otherwise
        """
        if not self.is_listening:
            return False

        log.info("Stopping now-playing listener")
        self._supervisor.terminate(timeout)
        return not self.is_listening

    def _on_stdout(self, text: str) -> None:
        track = parse_metadata(text)
        log.debug("Parsed %r -> %s", text, track)
        self._notify(DataNotification.from_track(track))

    def _on_stderr(self, text: str) -> None:
        self._notify(ErrorNotification(f"{PLAYER_ERROR_PREFIX}{text.rstrip()}"))

    def _on_exit(self, exit_code: Optional[int], signal: Optional[int]) -> None:
        reason = f"exit code {exit_code}" if signal is None else f"signal {signal}"
        with self._state_machine.lock:
            self._handle = None
            self._last_exit = (exit_code, signal)
            self._state_machine.transition_to(ListenerState.IDLE, reason)

    def _notify(self, notification: Notification) -> None:
        self._sink(notification)
