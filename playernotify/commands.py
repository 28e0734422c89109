"""
Playback command dispatch through playerctl.

Commands are passed to playerctl as argument lists, never through a shell.
"""

import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import PlayerConfig
from .errors import CommandFailedError, InvalidArgumentError, InvalidCommandError, SpawnError, UnsupportedPlayerError
from .module_registry import module_registry

log = module_registry.register_module(
    name="commands",
    description="Playback commands sent to playerctl (play, pause, next, ...)",
    logger_name="commands",
    debug_flag="--debug-commands",
)

PLAYBACK_COMMANDS = ("next", "previous", "pause", "play", "play-pause")


@dataclass
class CommandResult:
    """Outcome of one playerctl invocation."""

    command: str
    player: Optional[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class PlayerController:
    """Validates and runs playback commands against the configured players."""

    def __init__(self, config: Optional[PlayerConfig] = None):
        self._config = config or PlayerConfig()

    @property
    def supported_players(self) -> List[str]:
        return list(self._config.supported_players)

    def is_supported_player(self, name: str) -> bool:
        return name in self._config.supported_players

    @staticmethod
    def is_playback_command(name: str) -> bool:
        return name in PLAYBACK_COMMANDS

    def build_argv(self, command: str, player: Optional[str] = None) -> List[str]:
        argv = [self._config.executable]
        if player:
            argv += ["-p", player]
        argv.append(command)
        return argv

    def run_command(self, command: str, player: Optional[str] = None) -> CommandResult:
        """
        Run a playback command, optionally on one player.

        Args:
            command: One of PLAYBACK_COMMANDS
            player: One of the configured players, or None for playerctl's default

        Returns:
            CommandResult for a successful run

        Raises:
            InvalidCommandError: Unknown playback command
            UnsupportedPlayerError: Player not in the configured list
            SpawnError: playerctl could not be started
            CommandFailedError: playerctl exited non-zero or timed out
        """
        if not self.is_playback_command(command):
            raise InvalidCommandError(f"Invalid player argument {command}")
        if player is not None and not self.is_supported_player(player):
            raise UnsupportedPlayerError(f"Invalid argument {player}")

        argv = self.build_argv(command, player)
        log.debug("Running: %s", argv)

        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self._config.command_timeout,
                check=False,
            )
        except OSError as e:
            log.error("Failed to run %s: %s", argv[0], e)
            raise SpawnError(argv, e) from e
        except subprocess.TimeoutExpired as e:
            log.error("%s timed out after %.1fs", " ".join(argv), self._config.command_timeout)
            raise CommandFailedError(argv, -1, "timed out") from e

        if completed.returncode != 0:
            log.warning("%s failed with status %s", " ".join(argv), completed.returncode)
            raise CommandFailedError(argv, completed.returncode, completed.stderr or "")

        log.info("Sent %s%s", command, f" to {player}" if player else "")
        return CommandResult(
            command=command,
            player=player,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def parse_player_arguments(
    args: Sequence[str], controller: PlayerController
) -> Tuple[Optional[str], Optional[str]]:
    """
    Split ``[player] [command]`` arguments into (player, command).

    Accepted forms: no arguments, a player, a command, or a player followed by
    a command.

    Raises:
        InvalidArgumentError: Unknown argument or too many arguments
    """
    if len(args) > 2:
        raise InvalidArgumentError(f"Too many arguments: {' '.join(args)}")

    first = args[0] if args else ""
    second = args[1] if len(args) > 1 else ""

    if controller.is_supported_player(first):
        if not second:
            return first, None
        if not controller.is_playback_command(second):
            raise InvalidCommandError(f"Invalid player argument {second}")
        return first, second

    if not first:
        return None, None

    if not controller.is_playback_command(first):
        raise InvalidArgumentError(f"Invalid argument {first}")
    if second:
        raise InvalidArgumentError(f"Invalid argument {second}")
    return None, first
