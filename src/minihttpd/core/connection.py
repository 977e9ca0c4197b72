"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the small API the request handler
needs: read a line, send bytes, close exactly once.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. The client may write its
request in one call and we may receive it in five pieces:

    Client sends:   "GET /index.html HTTP/1.1\r\nHost: x\r\n\r\n"

    recv() → "GET /ind"
    recv() → "ex.html HTTP/1.1\r\nHo"
    recv() → "st: x\r\n\r\n"

We only ever need LINES (request line, then headers, then a blank line),
so the socket is wrapped in a buffered file object and read with
readline(). The buffering layer reassembles the pieces for us:

    socket.makefile("rb")
        └── readline() → b"GET /index.html HTTP/1.1\r\n"
        └── readline() → b"Host: x\r\n"
        └── readline() → b"\r\n"

=============================================================================
CLOSING EXACTLY ONCE
=============================================================================

Every exit path of the handler (served, 404, rejected, crashed) must
release the socket, and must not release it twice. The context manager
guarantees the first; the CLOSED state makes close() idempotent:

    with conn:
        ... anything, including exceptions ...
    # conn.close() has run exactly once here

makefile() keeps its own reference to the socket: socket.close() does
NOT release the file descriptor while the reader is still open. close()
therefore shuts the reader first.

=============================================================================
"""

import socket
import logging
import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states (for logging and close-once tracking)."""
    NEW = "new"              # Just accepted
    READING = "reading"      # Reading the header block
    WRITING = "writing"      # Sending the response
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for diagnostic logs.
        state: Current connection state.
        timeout: Socket deadline in seconds. None = block forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    timeout: Optional[float] = None

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    # close() stops draining unread input after this long or this many bytes
    DRAIN_TIMEOUT = 0.5
    DRAIN_LIMIT = 64 * 1024

    def __post_init__(self):
        # Accepted sockets can inherit the listener's polling timeout;
        # start from plain blocking mode and apply our own deadline.
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def peer(self) -> str:
        """Client identity as it appears in the log: "ip:port"."""
        return f"{self.client_ip}:{self.client_port}"

    @property
    def is_connected(self) -> bool:
        """True while the socket is open and still has a peer."""
        if self.state == ConnectionState.CLOSED:
            return False
        try:
            self.socket.getpeername()
        except OSError:
            return False
        return True

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[str]:
        """
        Read one line, without its line terminator.

        Accepts "\\r\\n" and bare "\\n" endings.

        Returns:
            The decoded line, or None at end of stream.
        """
        self.state = ConnectionState.READING
        if self._reader is None:
            self._reader = self.socket.makefile("rb")

        raw = self._reader.readline()
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace").rstrip("\r\n")

    def lines(self) -> Iterator[str]:
        """Iterate over incoming lines until the client stops sending."""
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send bytes to the client.

        Uses sendall() so a large file is not cut short when the kernel
        send buffer fills up.

        Returns:
            True if everything was sent, False if the client is gone.
        """
        self.state = ConnectionState.WRITING
        if not self.is_connected:
            logger.debug(f"[{self.id}] Connection dropped before send")
            return False
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.debug(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. drain briefly: unread request bytes would otherwise turn the
           close into a RST that can discard the response in flight.
           Bounded by DRAIN_TIMEOUT and DRAIN_LIMIT, so a client that
           keeps sending cannot hold the thread.
        3. close the reader and the socket
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        deadline = time.monotonic() + self.DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < self.DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
            self._reader = None

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
