"""Control-and-notification shim over playerctl."""

from .listener import NowPlayingListener
from .track_metadata import TrackMetadata, parse_metadata

__all__ = ["NowPlayingListener", "TrackMetadata", "parse_metadata"]
