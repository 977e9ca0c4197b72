"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the components together: one Listener, one shared ServerLog, and a
ConnectionHandler that serves each connection start to finish.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │  StaticServer   │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │   Listener   │    │  Dispatcher  │    │  ServerLog   │        │
    │    │ (accept loop)│    │ (concurrency)│    │ (shared sink)│        │
    │    └──────┬───────┘    └──────┬───────┘    └──────▲───────┘        │
    │           │                   ▼                   │                 │
    │           │          ┌────────────────────┐       │                 │
    │           └────────► │ ConnectionHandler  │ ──────┘                 │
    │                      │ parse → resolve →  │                         │
    │                      │ respond → log      │                         │
    │                      └────────────────────┘                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one connection)
=============================================================================

    AwaitingHeaders ──► not GET ─────────────────────────► Rejected ─┐
          │                                                          │
          ▼                                                          │
    ResolvingPath ───► missing file / unknown type ──────► NotFound ─┤
          │                                                          │
          ▼                                                          │
       Serving ──────────────────────────────────────────────────────┤
                                                                     ▼
                                                                  Closed

Any exception on the way is logged and the connection still reaches
Closed. Nothing escapes to the listener or to other connections.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .log import ServerLog
from .core.connection import Connection
from .core.dispatcher import ConnectionDispatcher, create_dispatcher
from .core.listener import Listener
from .http.mime_types import format_mime_table
from .http.paths import PathResolver
from .http.request import is_supported, read_request, split_request_line
from .http.response import not_found, ok, write_response


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves one connection end to end.

    Stateless between connections, so one instance is shared by every
    thread. All per-request state lives in local variables.
    """

    def __init__(self, resolver: PathResolver, log: ServerLog):
        self.resolver = resolver
        self.log = log

    def handle(self, conn: Connection) -> None:
        """Serve conn and close it, whatever happens."""
        with conn:
            try:
                self._serve(conn)
            except Exception as e:
                self.log.write(f"Unexpected error: {e!r}")
                logger.debug(f"[{conn.id}] Handler error", exc_info=True)

    def _serve(self, conn: Connection) -> None:
        # ─────────────────────────────────────────────────────────────────
        # AWAITING HEADERS
        # ─────────────────────────────────────────────────────────────────
        request = read_request(conn.lines())

        if not is_supported(request.request_line):
            self.log.write(f"Unsupported request {request.request_line}")
            return

        # ─────────────────────────────────────────────────────────────────
        # RESOLVING PATH
        # ─────────────────────────────────────────────────────────────────
        # X-Forwarded-For only changes who we SAY the client is in the
        # log. It plays no part in routing or in the response.
        client = request.forwarded_for or conn.peer

        parsed = split_request_line(request.request_line)
        resolved = self.resolver.resolve(parsed.path)

        # ─────────────────────────────────────────────────────────────────
        # NOT FOUND (missing file, or an extension with no configured type)
        # ─────────────────────────────────────────────────────────────────
        if not resolved.servable:
            response = not_found()
            write_response(conn, parsed.http_version, response, self.log)
            # The byte count of a 404 is always logged as 0
            self.log.write(f"{client} {resolved.url} 0 {response.status_code}")
            return

        # ─────────────────────────────────────────────────────────────────
        # SERVING
        # ─────────────────────────────────────────────────────────────────
        with open(resolved.local_path, "rb") as f:
            response = ok(f.read(), resolved.mime_type)

        self.log.write(f"{client} {resolved.url} {response.content_length} {response.status_code}")
        write_response(conn, parsed.http_version, response, self.log)


class StaticServer:
    """
    The static file server.

    Usage:
        config = ServerConfig(document_root="/var/www", port=8080)
        server = StaticServer(config)
        server.run()        # Blocks until shutdown() or Ctrl+C

    Args:
        config: Validated here (fail fast) before anything is bound.
        log: Shared request log. Built from config.log_file if omitted;
             servers on the same log file share one set of handlers.
        dispatcher: Concurrency strategy. Built from config.max_workers
                    if omitted (None → one thread per connection).
    """

    def __init__(
        self,
        config: ServerConfig,
        log: Optional[ServerLog] = None,
        dispatcher: Optional[ConnectionDispatcher] = None,
    ):
        config.validate()
        self.config = config

        self.log = log or ServerLog(config.log_file)
        self.handler = ConnectionHandler(PathResolver(config), self.log)
        self.listener = Listener(
            config,
            self.log,
            dispatcher or create_dispatcher(config.max_workers),
        )

    @property
    def address(self) -> Tuple[str, int]:
        return self.listener.address

    def start(self) -> None:
        """
        Bind the port without serving yet.

        Raises:
            StartupError: If the port cannot be bound.
        """
        self.listener.start()

    def run(self) -> None:
        """Bind (if not already bound) and serve until shutdown()."""
        if not self.listener.is_running:
            self.start()
        try:
            self.listener.run(self.handler.handle)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

    def shutdown(self) -> None:
        self.listener.shutdown()

    def banner(self, version: str) -> str:
        """Startup text printed by the CLI."""
        port = self.address[1]
        return "\n".join([
            f"minihttpd {version}",
            f"Using wwwroot: {self.config.document_root}",
            f"MIME types: {format_mime_table(self.config.mime_types)}",
            f"Webserver running on port {port}. Press ^C to stop.",
        ])


def setup_logging(level: str = "INFO") -> None:
    """Configure the diagnostic (non-request) loggers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
