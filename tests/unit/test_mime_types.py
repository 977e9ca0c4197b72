"""
Unit tests for the configured MIME table.
"""

import pytest

from minihttpd.http.mime_types import (
    DEFAULT_MIME_TYPES,
    MimeTable,
    format_mime_table,
    parse_mime_table,
)


class TestParseMimeTable:
    """Tests for parse_mime_table()."""

    def test_pairs_in_order(self):
        pairs = parse_mime_table(".html|text/html;.css|text/css")

        assert pairs == ((".html", "text/html"), (".css", "text/css"))

    def test_whitespace_trimmed(self):
        pairs = parse_mime_table("  .html |  text/html ;  .png|image/png  ")

        assert pairs == ((".html", "text/html"), (".png", "image/png"))

    def test_empty_segments_skipped(self):
        assert parse_mime_table(".txt|text/plain;;  ;") == ((".txt", "text/plain"),)

    def test_empty_string(self):
        assert parse_mime_table("") == ()

    def test_missing_separator_rejected(self):
        with pytest.raises(ValueError) as exc_info:
            parse_mime_table(".html|text/html; .css")

        assert ".css" in str(exc_info.value)

    def test_default_table_parses(self):
        pairs = parse_mime_table(DEFAULT_MIME_TYPES)

        assert (".html", "text/html") in pairs
        assert (".png", "image/png") in pairs

    def test_format_is_inverse(self):
        pairs = ((".html", "text/html"), (".css", "text/css"))

        assert parse_mime_table(format_mime_table(pairs)) == pairs


class TestMimeTable:
    """Tests for MimeTable.lookup()."""

    @pytest.fixture
    def table(self) -> MimeTable:
        return MimeTable(parse_mime_table(".html|text/html; .PNG|image/png; .txt|text/plain"))

    def test_lookup(self, table):
        assert table.lookup("/var/www/index.html") == "text/html"

    def test_case_insensitive_extension(self, table):
        """.HTML and .html resolve identically, either side of the table."""
        assert table.lookup("INDEX.HTML") == table.lookup("index.html") == "text/html"
        assert table.lookup("logo.png") == "image/png"

    def test_unknown_extension(self, table):
        assert table.lookup("notes.bak") == ""

    def test_no_extension(self, table):
        assert table.lookup("README") == ""

    def test_matches_extension_not_name(self, table):
        """A file literally named "html" has no extension."""
        assert table.lookup("/var/www/html") == ""

    def test_only_last_extension_counts(self, table):
        assert table.lookup("archive.txt.bak") == ""
        assert table.lookup("archive.bak.txt") == "text/plain"

    def test_first_match_wins(self):
        table = MimeTable([(".js", "text/javascript"), (".JS", "application/javascript")])

        assert table.lookup("app.js") == "text/javascript"
