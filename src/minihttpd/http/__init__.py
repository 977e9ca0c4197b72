"""
HTTP protocol components: request reading, path/MIME resolution, response
writing.

    http/
    ├── request.py      # Header block reading, fixed-offset request line
    ├── paths.py        # Request path → file under the document root
    ├── mime_types.py   # Configured extension → MIME type table
    └── response.py     # Status line, headers, body
"""

from .request import RawRequest, ParsedRequest, read_request, split_request_line
from .mime_types import MimeTable, parse_mime_table, DEFAULT_MIME_TYPES
from .response import Response, build_header, write_response, STATUS_OK, STATUS_NOT_FOUND, NOT_FOUND_BODY

__all__ = [
    "RawRequest",
    "ParsedRequest",
    "read_request",
    "split_request_line",
    "MimeTable",
    "parse_mime_table",
    "DEFAULT_MIME_TYPES",
    "Response",
    "build_header",
    "write_response",
    "STATUS_OK",
    "STATUS_NOT_FOUND",
    "NOT_FOUND_BODY",
]
