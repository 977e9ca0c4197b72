"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads the request line and header block from a connection and extracts
the method, path and HTTP version.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    GET /docs/a.txt?x=1 HTTP/1.1\r\n      ◄── request line           │
    │    Host: example.com\r\n                 ◄── header                 │
    │    X-Forwarded-For: 10.0.0.7\r\n         ◄── header                 │
    │    \r\n                                  ◄── blank line: stop here  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Reading stops at the blank line (or at end of stream). Only GET is served,
so there is never a body to read after it.

=============================================================================
FIXED-OFFSET SLICING  (read this before "cleaning up" split_request_line)
=============================================================================

The method, path and version are NOT found by splitting on spaces. They
are cut at fixed offsets from the END of the line:

    GET /docs/a.txt?x=1 HTTP/1.1
                        ────┬───      last 8 characters  → http_version
        ───────┬───────
               │          ─────┬────  last 9 characters dropped
               └── what is left after removing "GET "    → path

This is only correct for lines shaped exactly "GET <path> HTTP/x.y". It is
kept on purpose, for compatibility with the server's existing behavior:

    - Input that does not match that shape is NOT repaired. A path that
      contains spaces keeps them; a lowercase "get" is not stripped.
    - A line too short to cut raises HTTPParseError instead of quietly
      producing an empty version or path.

The tests in tests/unit/test_request.py pin these offsets.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..errors import HTTPParseError


SUPPORTED_METHOD = "GET"
VERSION_LENGTH = 8        # len("HTTP/1.1")
VERSION_SUFFIX_LENGTH = 9  # len(" HTTP/1.1")

FORWARDED_FOR = "X-FORWARDED-FOR"


@dataclass
class RawRequest:
    """
    A request as read off the wire.

    Attributes:
        request_line: First line, e.g. "GET /index.html HTTP/1.1".
        headers: Header values keyed by UPPER-CASED name. A repeated
                 header keeps its last value.
    """

    request_line: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.upper(), default)

    @property
    def forwarded_for(self) -> Optional[str]:
        """Client address reported by a reverse proxy, if any."""
        value = self.get_header(FORWARDED_FOR)
        return value.strip() if value is not None else None


@dataclass
class ParsedRequest:
    """
    Method, path and version cut out of the request line.

    Only meaningful once the caller has checked method == "GET".
    """

    method: str
    path: str
    http_version: str


def parse_header_line(line: str) -> tuple:
    """
    Split a header line into (NAME, value).

    The name is everything before the FIRST ":" (trimmed, upper-cased);
    the value is everything after it (trimmed), so values may contain
    colons of their own:

        "Host: example.com:8080"  →  ("HOST", "example.com:8080")

    Raises:
        HTTPParseError: If the line has no ":".
    """
    colon = line.find(":")
    if colon < 0:
        raise HTTPParseError(f"Malformed header line: {line!r}")
    return line[:colon].strip().upper(), line[colon + 1:].strip()


def read_request(lines: Iterable[str]) -> RawRequest:
    """
    Read the request line and headers.

    Consumes lines until the first empty line or until the iterable runs
    out. Lines after the blank line are left unread.

    Args:
        lines: Lines without terminators (see Connection.lines()).

    Returns:
        RawRequest. request_line is "" if the client sent nothing.

    Raises:
        HTTPParseError: On a header line without ":".
    """
    request = RawRequest()
    first_line = True

    for line in lines:
        if not line:
            break

        if first_line:
            request.request_line = line
            first_line = False
            continue

        name, value = parse_header_line(line)
        request.headers[name] = value  # Last write wins

    return request


def request_method(request_line: str) -> str:
    """First space-delimited token of the request line, upper-cased."""
    return request_line.split(" ", 1)[0].upper()


def is_supported(request_line: str) -> bool:
    return request_method(request_line) == SUPPORTED_METHOD


def split_request_line(request_line: str) -> ParsedRequest:
    """
    Cut path and HTTP version out of a GET request line.

    See the module docstring: this is fixed-offset slicing, not parsing.

        "GET /index.html HTTP/1.1"
            http_version = "HTTP/1.1"     (last 8 characters)
            path         = "/index.html"  ("GET " removed, last 9 dropped)

    Raises:
        HTTPParseError: If the line is shorter than the offsets require.
    """
    if len(request_line) < VERSION_LENGTH:
        raise HTTPParseError(f"Request line too short: {request_line!r}")
    http_version = request_line[-VERSION_LENGTH:]

    remainder = request_line.replace(SUPPORTED_METHOD + " ", "")
    if len(remainder) < VERSION_SUFFIX_LENGTH:
        raise HTTPParseError(f"Request line too short: {request_line!r}")
    path = remainder[:len(remainder) - VERSION_SUFFIX_LENGTH]

    return ParsedRequest(
        method=request_method(request_line),
        path=path,
        http_version=http_version,
    )
