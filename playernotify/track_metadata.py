"""
Parsing of playerctl metadata output into track records.

The listener asks playerctl for ``artist``, ``album`` and ``title`` on three
separate lines. Output arrives in arbitrary chunks, so a chunk may hold a
partial record; parsing never fails, missing fields are simply empty.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Union

# Format string handed to ``playerctl metadata --format``
METADATA_FORMAT = "{{ artist }}\n{{ album }}\n{{ title }}"

_FIELDS = ("artist", "album", "title")


def format_display(artist: str, album: str, title: str) -> str:
    """Build the notification text for a track.

    Tracks without artist and album (streams, local files without tags) show
    the title alone.
    """
    if not artist and not album:
        return title
    return f"{artist} - {title}"


@dataclass(frozen=True)
class TrackMetadata:
    """One snapshot of the currently playing media."""

    artist: str = ""
    album: str = ""
    title: str = ""

    @property
    def display(self) -> str:
        return format_display(self.artist, self.album, self.title)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def parse_metadata(chunk: Union[str, bytes]) -> TrackMetadata:
    """
    Parse one chunk of playerctl output into a TrackMetadata.

    Args:
        chunk: Text (or UTF-8 bytes) expected to look like ``artist\\nalbum\\ntitle``,
            possibly followed by a trailing newline

    Returns:
        TrackMetadata with missing positions filled with empty strings
    """
    if isinstance(chunk, bytes):
        chunk = chunk.decode("utf-8", errors="replace")

    segments = [segment.rstrip("\r") for segment in chunk.split("\n")]
    values = segments[: len(_FIELDS)]
    values += [""] * (len(_FIELDS) - len(values))

    return TrackMetadata(**dict(zip(_FIELDS, values)))
