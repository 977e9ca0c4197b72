"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized, immutable configuration for the static file server.

=============================================================================
ONE VALUE, LOADED ONCE
=============================================================================

The configuration is built ONCE at startup and then passed by reference
into the listener and every connection handler. Nothing reads settings
from a global afterwards, and nothing can change them:

    ServerConfig.from_env()          ◄── defaults + environment
        │
        ▼
    dataclasses.replace(cfg, ...)    ◄── CLI flags override the environment
        │
        ▼
    cfg.validate()                   ◄── fail fast, before binding
        │
        ▼
    StaticServer(cfg)                ◄── shared read-only by all threads

frozen=True makes that last step safe: worker threads can read the same
object concurrently without locks because nobody can write to it.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m minihttpd --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPD_PORT=3000 python -m minihttpd                       │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .http.mime_types import DEFAULT_MIME_TYPES, MimePair, parse_mime_table


def _default_mime_types() -> Tuple[MimePair, ...]:
    return parse_mime_table(DEFAULT_MIME_TYPES)


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    CONTENT
    - document_root, default_document, mime_types, block_traversal

    CONCURRENCY
    - max_workers

    LOGGING
    - log_file, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. The default listens on every local interface."""

    port: int = 8080

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses new ones."""

    timeout: Optional[float] = None
    """
    Per-connection socket deadline in seconds.
    None = no deadline: a slow client holds its worker indefinitely.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "wwwroot"
    """
    Base directory for request paths ("wwwroot").
    Request paths are appended to it verbatim, so no trailing separator.
    """

    default_document: str = "index.html"
    """File served for a request to "/"."""

    mime_types: Tuple[MimePair, ...] = field(default_factory=_default_mime_types)
    """Ordered (extension, MIME type) pairs. Unlisted extensions get a 404."""

    block_traversal: bool = False
    """
    Refuse paths that resolve outside document_root ("/../etc/passwd").
    Off by default: request paths are mapped without canonicalization.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: Optional[int] = None
    """
    None = one thread per connection (unbounded).
    N    = fixed pool of N worker threads with a queue in front.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_file: str = "minihttpd.log"
    """Append-only request log. Every line is echoed to the console too."""

    log_level: str = "INFO"
    """Level for diagnostic module loggers (DEBUG, INFO, WARNING, ERROR)."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPD_HOST              Bind address (default: 0.0.0.0)
        HTTPD_PORT              Listening port (default: 8080)
        HTTPD_WWWROOT           Document root (default: wwwroot)
        HTTPD_DEFAULT_DOCUMENT  Served for "/" (default: index.html)
        HTTPD_MIME_TYPES        ".ext|type; .ext|type" table
        HTTPD_LOG_FILE          Log file path (default: minihttpd.log)
        HTTPD_LOG_LEVEL         Diagnostic log level (default: INFO)
        HTTPD_WORKERS           Worker pool size (default: thread per connection)
        HTTPD_TIMEOUT           Socket deadline in seconds (default: none)

        =====================================================================
        """
        defaults = cls()

        workers = os.getenv("HTTPD_WORKERS")
        timeout = os.getenv("HTTPD_TIMEOUT")
        mime_types = os.getenv("HTTPD_MIME_TYPES")

        return cls(
            host=os.getenv("HTTPD_HOST", defaults.host),
            port=int(os.getenv("HTTPD_PORT", str(defaults.port))),
            document_root=os.getenv("HTTPD_WWWROOT", defaults.document_root),
            default_document=os.getenv("HTTPD_DEFAULT_DOCUMENT", defaults.default_document),
            mime_types=parse_mime_table(mime_types) if mime_types else defaults.mime_types,
            log_file=os.getenv("HTTPD_LOG_FILE", defaults.log_file),
            log_level=os.getenv("HTTPD_LOG_LEVEL", defaults.log_level),
            max_workers=int(workers) if workers else None,
            timeout=float(timeout) if timeout else None,
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called before the socket is bound so that a typo in the
        environment stops the process immediately instead of surfacing
        as 404s on every request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.document_root):
            raise ValueError(f"wwwroot does not exist: {self.document_root}")

        if not self.default_document:
            raise ValueError("default_document must not be empty")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
