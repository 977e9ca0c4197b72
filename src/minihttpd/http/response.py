"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Serializes the server's two possible answers (a file, or the 404 page).

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n                 ◄── version + status, NO space added
    Server: httpdSharp\r\n              ◄── fixed
    Content-Type: text/css\r\n          ◄── configured type, "text/html" if ""
    Content-Length: 1043\r\n            ◄── always len(body)
    \r\n
    <1043 bytes of file content>

The status strings carry their own leading space (" 200 OK"), and the
version is whatever the request line ended with. Header order and
spelling are fixed; clients of this server have long depended on them.

=============================================================================
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.connection import Connection
    from ..log import ServerLog


SERVER_NAME = "httpdSharp"
DEFAULT_CONTENT_TYPE = "text/html"

STATUS_OK = " 200 OK"
STATUS_NOT_FOUND = " 404 Not Found"

NOT_FOUND_BODY = b"<html><body><H2>404 Not Found</H2></body></html>"


@dataclass
class Response:
    """
    A response ready to be written.

    Attributes:
        status: Status with leading space, e.g. " 200 OK".
        mime_type: Content type; "" falls back to text/html.
        body: Raw body bytes.
    """

    status: str
    mime_type: str = ""
    body: bytes = b""

    @property
    def content_length(self) -> int:
        return len(self.body)

    @property
    def status_code(self) -> int:
        """Numeric code, for the log line: " 404 Not Found" → 404."""
        return int(self.status.split()[0])


def ok(body: bytes, mime_type: str) -> Response:
    return Response(status=STATUS_OK, mime_type=mime_type, body=body)


def not_found() -> Response:
    return Response(status=STATUS_NOT_FOUND, body=NOT_FOUND_BODY)


def build_header(http_version: str, mime_type: str, content_length: int, status: str) -> bytes:
    """
    Build the status line and header block.

    Example:
        >>> build_header("HTTP/1.1", "", 5, " 404 Not Found")
        b'HTTP/1.1 404 Not Found\\r\\nServer: httpdSharp\\r\\nContent-Type: text/html\\r\\nContent-Length: 5\\r\\n\\r\\n'
    """
    lines = [
        http_version + status,
        f"Server: {SERVER_NAME}",
        f"Content-Type: {mime_type or DEFAULT_CONTENT_TYPE}",
        f"Content-Length: {content_length}",
        "",
        "",
    ]
    # Non-ASCII characters become "?" instead of failing the response
    return "\r\n".join(lines).encode("ascii", errors="replace")


def write_response(conn: "Connection", http_version: str, response: Response, log: "ServerLog") -> bool:
    """
    Send header block then body on one connection.

    A failed send is logged and reported through the return value; it
    never raises. Closing the connection is the caller's job.

    Returns:
        True if both parts were sent.
    """
    header = build_header(http_version, response.mime_type, response.content_length, response.status)

    for part in (header, response.body):
        if not part:
            continue
        if not conn.send(part):
            log.write(f"Socket error, cannot send data to {conn.peer}")
            return False
    return True
