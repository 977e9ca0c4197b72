"""
=============================================================================
MINIHTTPD CLI ENTRY POINT
=============================================================================

    # Serve ./wwwroot on port 8080 (defaults)
    python -m minihttpd

    # Custom port and document root
    python -m minihttpd --port 3000 --wwwroot ./public

    # Bounded worker pool and a 30 second client deadline
    python -m minihttpd --workers 16 --timeout 30

Every flag can also come from the environment (HTTPD_PORT, HTTPD_WWWROOT,
...; see ServerConfig.from_env). Flags win over the environment.

=============================================================================
"""

import argparse
import dataclasses
import sys

from . import __version__
from .config import ServerConfig
from .http.mime_types import parse_mime_table
from .server import StaticServer, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Small HTTP server for static content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttpd                          # Serve ./wwwroot on 8080
  python -m minihttpd --port 3000              # Custom port
  python -m minihttpd --wwwroot ./public       # Custom document root
  python -m minihttpd --mime-types ".html|text/html; .css|text/css"
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", help="Address to bind (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--timeout", type=float, help="Per-connection deadline in seconds (default: none)")
    parser.add_argument("--workers", "-w", type=int, help="Worker pool size (default: one thread per connection)")

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--wwwroot", "-r", help="Document root (default: wwwroot)")
    parser.add_argument("--default-document", "-d", help="File served for / (default: index.html)")
    parser.add_argument("--mime-types", "-m", help='Extension table, e.g. ".html|text/html; .png|image/png"')
    parser.add_argument(
        "--block-traversal",
        action="store_true",
        default=None,
        help="Answer 404 for paths that resolve outside the document root",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--log-file", help="Request log file (default: minihttpd.log)")
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic logging level (default: INFO)",
    )

    parser.add_argument("--version", "-v", action="version", version=f"minihttpd {__version__}")

    return parser


def config_from_args(args: argparse.Namespace, base: ServerConfig) -> ServerConfig:
    """Overlay the flags that were actually given on top of base."""
    overrides = {
        "host": args.host,
        "port": args.port,
        "timeout": args.timeout,
        "max_workers": args.workers,
        "document_root": args.wwwroot,
        "default_document": args.default_document,
        "block_traversal": args.block_traversal,
        "log_file": args.log_file,
        "log_level": args.log_level,
    }
    if args.mime_types is not None:
        overrides["mime_types"] = parse_mime_table(args.mime_types)

    return dataclasses.replace(base, **{k: v for k, v in overrides.items() if v is not None})


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args, ServerConfig.from_env())
        setup_logging(config.log_level)

        server = StaticServer(config)
        server.start()
    except (OSError, ValueError) as e:
        print(f"An unhandled exception occurred while starting: {e}", file=sys.stderr)
        return 1

    print(server.banner(__version__))
    print()

    server.run()  # Blocks until Ctrl+C
    return 0


if __name__ == "__main__":
    sys.exit(main())
