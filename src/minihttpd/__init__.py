"""
=============================================================================
MINIHTTPD - Small HTTP Server for Static Content
=============================================================================

Serves files from one directory over plain HTTP, using raw sockets and a
thread per connection.

    GET /index.html HTTP/1.1    ──►   200 + file bytes
    GET /missing.png HTTP/1.1   ──►   404 page
    POST / HTTP/1.1             ──►   connection closed, nothing sent

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttpd)
    ├── server.py            # StaticServer + ConnectionHandler
    ├── config.py            # ServerConfig (frozen dataclass)
    ├── log.py               # ServerLog: shared, locked request log
    ├── errors.py            # StartupError, HTTPParseError
    ├── core/                # Networking
    │   ├── listener.py      # Bind + accept loop
    │   ├── connection.py    # Client socket wrapper
    │   └── dispatcher.py    # Thread per connection / worker pool
    └── http/                # Protocol
        ├── request.py       # Header block + fixed-offset request line
        ├── paths.py         # Request path → local file
        ├── mime_types.py    # Configured extension table
        └── response.py      # Status line, headers, body

=============================================================================
QUICK START
=============================================================================

    from minihttpd import StaticServer, ServerConfig

    server = StaticServer(ServerConfig(document_root="./public", port=8080))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import HTTPParseError, StartupError
from .log import ServerLog
from .server import ConnectionHandler, StaticServer

__all__ = [
    "StaticServer",
    "ConnectionHandler",
    "ServerConfig",
    "ServerLog",
    "StartupError",
    "HTTPParseError",
    "__version__",
]
