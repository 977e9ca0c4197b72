"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps a file extension to the Content-Type sent back to the browser.

=============================================================================
WHY A CONFIGURED TABLE (AND NOT mimetypes.guess_type)?
=============================================================================

The server only serves files whose type the operator has explicitly
listed. A file that exists but has an unlisted extension is answered with
404, exactly as if it were missing:

    GET /index.html   →  ".html" listed   →  200 text/html
    GET /notes.bak    →  ".bak" unlisted  →  404 Not Found

This keeps backup files, source files and other stray content in the
document root from leaking out. The stdlib guesser would happily label
all of them.

=============================================================================
TABLE FORMAT
=============================================================================

The table arrives as ONE delimited string (from an environment variable or
a CLI flag):

    ".html|text/html; .css|text/css; .png|image/png"
      ─┬──  ────┬────
       │        │
    extension  type          pairs separated by ";"
                             extension and type separated by "|"
                             whitespace around either side is trimmed

Lookup is a linear scan in table order; the FIRST matching extension
wins. Matching is case-insensitive on the extension only:

    photo.PNG  →  ".png"  →  image/png
    PNG        →  ""      →  no extension, no match

=============================================================================
"""

import os
from typing import Iterable, Tuple


MimePair = Tuple[str, str]


# =============================================================================
# DEFAULT TABLE
# =============================================================================
# Used when the operator does not configure one. Same delimited format the
# operator would write, so it doubles as an example.

DEFAULT_MIME_TYPES = (
    ".html|text/html;"
    ".htm|text/html;"
    ".css|text/css;"
    ".js|text/javascript;"
    ".json|application/json;"
    ".xml|application/xml;"
    ".txt|text/plain;"
    ".csv|text/csv;"
    ".png|image/png;"
    ".jpg|image/jpeg;"
    ".jpeg|image/jpeg;"
    ".gif|image/gif;"
    ".svg|image/svg+xml;"
    ".ico|image/x-icon;"
    ".webp|image/webp;"
    ".woff|font/woff;"
    ".woff2|font/woff2;"
    ".pdf|application/pdf;"
    ".zip|application/zip"
)


def parse_mime_table(text: str) -> Tuple[MimePair, ...]:
    """
    Parse the delimited extension table into ordered (extension, type) pairs.

    Empty segments (a trailing ";" or ";;") are skipped. A segment without
    a "|" is a configuration error and is reported at startup rather than
    on the first request that happens to scan past it.

    Examples:
        >>> parse_mime_table(".html | text/html; .PNG|image/png;")
        (('.html', 'text/html'), ('.PNG', 'image/png'))

    Raises:
        ValueError: If a segment has no "|" separator.
    """
    pairs = []
    for segment in text.split(";"):
        if not segment.strip():
            continue
        if "|" not in segment:
            raise ValueError(f"Invalid MIME table entry (expected 'ext|type'): {segment.strip()!r}")
        extension, mime_type = segment.split("|", 1)
        pairs.append((extension.strip(), mime_type.strip()))
    return tuple(pairs)


def format_mime_table(pairs: Iterable[MimePair]) -> str:
    """Inverse of parse_mime_table (used for the startup banner)."""
    return "; ".join(f"{ext}|{mime}" for ext, mime in pairs)


class MimeTable:
    """
    Ordered extension → MIME type lookup.

    Usage:
        table = MimeTable(parse_mime_table(DEFAULT_MIME_TYPES))
        table.lookup("/var/www/logo.PNG")   # 'image/png'
        table.lookup("/var/www/notes.bak")  # ''
    """

    def __init__(self, pairs: Iterable[MimePair]):
        self._pairs = tuple(pairs)

    def lookup(self, path: str) -> str:
        """
        Get the MIME type for a file path.

        Args:
            path: Local file path (or bare file name).

        Returns:
            The configured MIME type, or "" when the extension is not
            listed. Callers treat "" as "not found".
        """
        extension = os.path.splitext(path)[1].lower()
        for configured, mime_type in self._pairs:
            if extension == configured.lower():
                return mime_type
        return ""
