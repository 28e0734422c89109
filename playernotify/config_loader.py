"""
Configuration loader for playernotify.

Supports loading configuration from YAML files with environment variable overrides.
"""

import logging
import os
from typing import Optional

import yaml

from .config import AppConfig, ListenerConfig, PlayerConfig

log = logging.getLogger("config")


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. Defaults to "playernotify.yaml"

    Returns:
        AppConfig instance with loaded settings
    """
    config = AppConfig.create_default()

    config_path = config_path or "playernotify.yaml"
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)

            if config_data:
                apply_file_config(config, config_data)

        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            # Keep defaults when the file is unreadable
            log.warning("Could not load config from %s: %s", config_path, e)

    apply_env_overrides(config)

    return config


def apply_file_config(config: AppConfig, config_data: dict) -> None:
    """Apply the sections of a parsed YAML document."""
    if "listener" in config_data:
        listener_data = config_data["listener"] or {}
        defaults = ListenerConfig()
        config.listener = ListenerConfig(
            executable=listener_data.get("executable", defaults.executable),
            chunk_size=int(listener_data.get("chunk_size", defaults.chunk_size)),
            encoding=listener_data.get("encoding", defaults.encoding),
            stop_timeout=float(listener_data.get("stop_timeout", defaults.stop_timeout)),
            thread_join_timeout=float(listener_data.get("thread_join_timeout", defaults.thread_join_timeout)),
            exit_drain_timeout=float(listener_data.get("exit_drain_timeout", defaults.exit_drain_timeout)),
            daemon_threads=bool(listener_data.get("daemon_threads", defaults.daemon_threads)),
        )

    if "player" in config_data:
        player_data = config_data["player"] or {}
        defaults = PlayerConfig()
        config.player = PlayerConfig(
            executable=player_data.get("executable", defaults.executable),
            supported_players=list(player_data.get("supported_players", defaults.supported_players)),
            command_timeout=float(player_data.get("command_timeout", defaults.command_timeout)),
        )

    config.debug = bool(config_data.get("debug", False))
    config.log_level = str(config_data.get("log_level", "INFO")).upper()


def apply_env_overrides(config: AppConfig) -> None:
    """Apply environment variable overrides to configuration."""

    # Executable path applies to both the listener and the command layer
    if os.getenv("PLAYERCTL_PATH"):
        config.listener.executable = os.getenv("PLAYERCTL_PATH")
        config.player.executable = os.getenv("PLAYERCTL_PATH")

    if os.getenv("PLAYERNOTIFY_PLAYERS"):
        players = [p.strip() for p in os.getenv("PLAYERNOTIFY_PLAYERS").split(",")]
        config.player.supported_players = [p for p in players if p]

    # Global settings
    if os.getenv("DEBUG"):
        config.debug = os.getenv("DEBUG").lower() in ("true", "1", "yes")

    if os.getenv("LOG_LEVEL"):
        config.log_level = os.getenv("LOG_LEVEL").upper()
