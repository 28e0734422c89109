#!/usr/bin/env python3
"""Command-line interface entry points for playernotify."""

import argparse
import datetime
import logging
import sys
import time
from typing import Optional, Sequence, Set

from .commands import PLAYBACK_COMMANDS, PlayerController, parse_player_arguments
from .config_loader import load_config
from .errors import PlayerNotifyError
from .listener import NowPlayingListener
from .module_registry import module_registry


class MillisecondFormatter(logging.Formatter):
    """Formatter that includes milliseconds in timestamps."""

    def formatTime(self, record, datefmt=None):
        if datefmt:
            return time.strftime(datefmt, self.converter(record.created))
        return datetime.datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]


class DebugLogFilter(logging.Filter):
    """Filter controlling debug message visibility by subsystem."""

    def __init__(self, subsystems: Optional[Set[str]] = None):
        """Initialize filter with allowed subsystems.

        Args:
            subsystems: Logger names to show debug messages for.
                       If None, show all debug messages.
                       If empty set, show no debug messages.
        """
        super().__init__()
        self.subsystems = subsystems

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True
        if self.subsystems is None:
            return True
        return record.name in self.subsystems


def setup_logging(level: str = "INFO", debug_subsystems: Optional[Set[str]] = None) -> logging.Handler:
    """Send logs to stderr, optionally narrowing DEBUG output to some subsystems."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(MillisecondFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    if debug_subsystems:
        logger_names = {module_registry.get_module_info(name)["logger_name"] for name in debug_subsystems}
        handler.addFilter(DebugLogFilter(logger_names))
        level = "DEBUG"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)
    return handler


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML configuration file (default: playernotify.yaml)")
    parser.add_argument("--debug", action="store_true", help="Show all debug messages")
    for flag, name in sorted(module_registry.get_debug_flags().items()):
        info = module_registry.get_module_info(name)
        parser.add_argument(
            flag,
            action="append_const",
            const=name,
            dest="debug_subsystems",
            help=f"Show debug messages for {info['description']}",
        )


def listen_main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for playernotify-listen command."""
    parser = argparse.ArgumentParser(description="Log now-playing changes until interrupted")
    add_common_arguments(parser)
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging("DEBUG" if args.debug or config.debug else config.log_level, set(args.debug_subsystems or []))

    listener = NowPlayingListener(config=config.listener)
    _, error = listener.start_listening()
    if error:
        return 1

    try:
        while listener.is_listening:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("Stopping...", file=sys.stderr)
        listener.stop()
        return 0

    exit_code, signal = listener.last_exit or (0, None)
    if signal is not None:
        return 128 + signal
    return exit_code or 0


def player_main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for playernotify command."""
    parser = argparse.ArgumentParser(description="Send a playback command through playerctl")
    parser.add_argument("arguments", nargs="*", metavar="[player] [command]", help=", ".join(PLAYBACK_COMMANDS))
    add_common_arguments(parser)
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging("DEBUG" if args.debug or config.debug else config.log_level, set(args.debug_subsystems or []))

    controller = PlayerController(config.player)
    try:
        player, command = parse_player_arguments(args.arguments, controller)
        if command is None:
            parser.print_usage(sys.stderr)
            print(f"Players: {', '.join(controller.supported_players)}", file=sys.stderr)
            print(f"Commands: {', '.join(PLAYBACK_COMMANDS)}", file=sys.stderr)
            return 2
        controller.run_command(command, player)
    except PlayerNotifyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(command if player is None else f"{command} ({player})")
    return 0


def mcp_main():
    """Entry point for playernotify-mcp command."""
    import asyncio

    from .mcp_server import serve_mcp

    config = load_config()
    setup_logging(config.log_level)
    return asyncio.run(serve_mcp(config))


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "mcp":
        mcp_main()
    elif len(sys.argv) > 1 and sys.argv[1] == "listen":
        sys.exit(listen_main(sys.argv[2:]))
    else:
        sys.exit(player_main(sys.argv[1:]))
