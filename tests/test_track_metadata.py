"""
Tests for parsing playerctl metadata chunks.
"""

import pytest

from playernotify.track_metadata import METADATA_FORMAT, TrackMetadata, format_display, parse_metadata


class TestParseMetadata:
    """Test parse_metadata on complete and partial chunks."""

    def test_three_line_record(self):
        """Test that fields are mapped by position."""
        track = parse_metadata("Artist\nAlbum\nTitle")
        assert track == TrackMetadata(artist="Artist", album="Album", title="Title")

    def test_trailing_newline(self):
        """Test that the trailing empty segment from playerctl's newline is ignored."""
        assert parse_metadata("Artist\nAlbum\nTitle\n") == TrackMetadata("Artist", "Album", "Title")

    def test_parsing_is_idempotent(self):
        """Test that the same chunk always yields the same record."""
        chunk = "A\nB\nT"
        first = parse_metadata(chunk)
        second = parse_metadata(chunk)
        assert first == second
        assert first == TrackMetadata(artist="A", album="B", title="T")

    def test_truncated_chunk_does_not_raise(self):
        """Test that a chunk without newlines only fills the artist."""
        assert parse_metadata("Art") == TrackMetadata(artist="Art", album="", title="")

    @pytest.mark.parametrize(
        "chunk,expected",
        [
            ("", TrackMetadata("", "", "")),
            ("\n", TrackMetadata("", "", "")),
            ("Art\nAlb", TrackMetadata("Art", "Alb", "")),
            ("Title only from next record", TrackMetadata("Title only from next record", "", "")),
            ("A\nB\nT\nA2\nB2\nT2\n", TrackMetadata("A", "B", "T")),
        ],
    )
    def test_partial_and_combined_chunks(self, chunk, expected):
        """Test that split or merged records degrade to positional fields."""
        assert parse_metadata(chunk) == expected

    def test_bytes_input(self):
        """Test that UTF-8 bytes are decoded."""
        track = parse_metadata("Sigur Rós\nÁgætis byrjun\nSvefn-g-englar\n".encode("utf-8"))
        assert track.artist == "Sigur Rós"
        assert track.album == "Ágætis byrjun"

    def test_invalid_bytes_are_replaced(self):
        """Test that undecodable bytes never raise."""
        track = parse_metadata(b"\xff\xfe\nAlbum\nTitle")
        assert track.album == "Album"
        assert "�" in track.artist

    def test_carriage_returns_stripped(self):
        assert parse_metadata("Artist\r\nAlbum\r\nTitle\r\n") == TrackMetadata("Artist", "Album", "Title")

    def test_inner_whitespace_preserved(self):
        assert parse_metadata("  Artist \nAlbum\n Title ").title == " Title "


class TestDisplay:
    """Test the display fallback rule."""

    def test_title_only_when_artist_and_album_empty(self):
        assert parse_metadata("\n\nTitle").display == "Title"

    def test_artist_and_title(self):
        assert parse_metadata("Art\nAlb\nTitle").display == "Art - Title"

    def test_album_without_artist_keeps_separator(self):
        """Test that only a missing artist and album falls back to the title."""
        assert format_display("", "Album", "Title") == " - Title"

    def test_artist_without_album(self):
        assert format_display("Artist", "", "Title") == "Artist - Title"

    def test_to_dict(self):
        assert TrackMetadata("A", "B", "T").to_dict() == {"artist": "A", "album": "B", "title": "T"}

    def test_record_is_immutable(self):
        track = TrackMetadata("A", "B", "T")
        with pytest.raises(AttributeError):
            track.artist = "Other"


def test_metadata_format_matches_field_order():
    """Test that the playerctl format requests artist, album, title in order."""
    assert METADATA_FORMAT.split("\n") == ["{{ artist }}", "{{ album }}", "{{ title }}"]
