"""
=============================================================================
TCP LISTENER
=============================================================================

Binds the listening socket and runs the accept loop.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve HOST:PORT            ◄── StartupError if taken
    3. listen()    Start queueing connections
    4. accept()    Wait for a client, get a NEW socket for it
                   └─ the listening socket keeps listening
    5. close()     Release the port

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    │   0.0.0.0:8080        │     Never sends/receives data
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Client 1  │         │ Client 2  │         │ Client 3  │
    │ (thread)  │         │ (thread)  │         │ (thread)  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
FAILURE POLICY
=============================================================================

    bind()/listen() fails   →  StartupError, nothing is served
    accept() fails          →  logged, loop continues (never fatal)
    a handler fails         →  contained in its own thread

=============================================================================
"""

import socket
import logging
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from ..errors import StartupError
from ..log import ServerLog
from .connection import Connection
from .dispatcher import ConnectionDispatcher, ThreadPerConnectionDispatcher


logger = logging.getLogger(__name__)


class Listener:
    """
    Accepts connections and hands each one to a dispatcher.

    ┌─────────────────────────────────────────────────────────────────────┐
    │    start()           bind + listen (raises StartupError)            │
    │        │                                                             │
    │        ▼                                                             │
    │    run(handler)      while running:                                  │
    │                          accept()                                    │
    │                          Connection(...)                             │
    │                          dispatcher.dispatch(handler, conn)          │
    │                                                                      │
    │    shutdown()        running = False (observed within 1 second)      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        listener = Listener(config, log)
        listener.start()
        listener.run(handler.handle)   # Blocks
    """

    # accept() wakes up this often to check for shutdown()
    POLL_INTERVAL = 1.0

    def __init__(
        self,
        config: ServerConfig,
        log: ServerLog,
        dispatcher: Optional[ConnectionDispatcher] = None,
    ):
        self.config = config
        self.log = log
        self.dispatcher = dispatcher or ThreadPerConnectionDispatcher()

        self._socket: Optional[socket.socket] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port). Reports the real port when config.port is 0."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart immediately instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Poll so shutdown() is noticed; accepted sockets go back to blocking
        sock.settimeout(self.POLL_INTERVAL)
        return sock

    def start(self) -> None:
        """
        Bind and listen.

        Raises:
            StartupError: If the port cannot be bound.
        """
        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            raise StartupError(f"Cannot listen on {self.config.host}:{self.config.port}: {e}") from e

        self._socket = sock
        self._running = True
        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")

    def run(self, handler: Callable[[Connection], None]) -> None:
        """
        Accept loop. Blocks until shutdown().

        Args:
            handler: Called (via the dispatcher) once per connection.
        """
        if self._socket is None:
            self.start()

        self.dispatcher.start()
        try:
            self._accept_loop(handler)
        finally:
            self._cleanup()

    def _accept_loop(self, handler: Callable[[Connection], None]) -> None:
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll tick, check _running again
            except OSError as e:
                if not self._running:
                    break  # Socket closed by shutdown()
                self.log.write(f" unhandled exception: {e!r}")
                continue

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    timeout=self.config.timeout,
                )
                if conn.is_connected:
                    self.dispatcher.dispatch(handler, conn)
                else:
                    conn.close()
            except Exception as e:
                # Accept-side faults are never fatal to the loop
                self.log.write(f" unhandled exception: {e!r}")
                client_socket.close()

    def shutdown(self) -> None:
        """Stop accepting. Safe to call from any thread, more than once."""
        logger.info("Shutting down listener...")
        self._running = False

    def _cleanup(self) -> None:
        self.dispatcher.shutdown(wait=False)
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        logger.info("Listener stopped")
