"""
Configuration for the now-playing listener and the playback command layer.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ListenerConfig:
    """Configuration for NowPlayingListener and its ProcessSupervisor."""

    # Executable
    executable: str = "playerctl"

    # Stream reading
    chunk_size: int = 4096
    encoding: str = "utf-8"

    # Timing configuration
    stop_timeout: float = 2.0
    thread_join_timeout: float = 1.0
    exit_drain_timeout: float = 0.5

    # Threading
    daemon_threads: bool = True


@dataclass
class PlayerConfig:
    """Configuration for PlayerController."""

    executable: str = "playerctl"
    supported_players: List[str] = field(default_factory=lambda: ["cmus", "spotify", "firefox", "mpv"])
    command_timeout: float = 5.0


@dataclass
class AppConfig:
    """Main application configuration container."""

    listener: ListenerConfig = field(default_factory=ListenerConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)

    # Global settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def create_default(cls) -> "AppConfig":
        """Create a default configuration instance."""
        return cls()

    @classmethod
    def create_for_testing(cls) -> "AppConfig":
        """Create a configuration suitable for testing."""
        config = cls()
        config.listener.stop_timeout = 0.5
        config.listener.thread_join_timeout = 0.5
        config.player.command_timeout = 1.0
        config.debug = True
        config.log_level = "DEBUG"
        return config
