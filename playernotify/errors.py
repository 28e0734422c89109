"""
Exception types raised by the listener, supervisor and command layers.
"""

from typing import Optional, Sequence


class PlayerNotifyError(Exception):
    """Base error for playernotify."""

    pass


class SpawnError(PlayerNotifyError):
    """The player executable could not be started."""

    def __init__(self, command: Sequence[str], cause: Optional[BaseException] = None):
        self.command = list(command)
        self.cause = cause
        reason = str(cause) if cause else "unknown error"
        super().__init__(f"Failed to start {self.command[0] if self.command else '<empty>'}: {reason}")


class SupervisorBusyError(PlayerNotifyError):
    """The supervisor already owns a running child process."""

    pass


class InvalidArgumentError(PlayerNotifyError):
    """A player argument was not recognised."""

    pass


class InvalidCommandError(InvalidArgumentError):
    """Not one of the supported playback commands."""

    pass


class UnsupportedPlayerError(InvalidArgumentError):
    """Not one of the configured players."""

    pass


class CommandFailedError(PlayerNotifyError):
    """A playback command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"{' '.join(self.command)} exited with status {returncode}{detail}")
