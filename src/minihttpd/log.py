"""
=============================================================================
REQUEST LOG
=============================================================================

One shared, append-only log of what the server did:

    2026-10-18 09:14:02 127.0.0.1:53211 /index.html 1043 200
    2026-10-18 09:14:02 10.0.0.7 /missing.png 0 404
    2026-10-18 09:14:05 Unsupported request POST /form HTTP/1.1
    ─────────┬───────── ─────────────────┬─────────────────────
        UTC time                      message

Each line goes to the log file AND to the console.

=============================================================================
CONCURRENCY
=============================================================================

Every connection runs in its own thread and every one of them logs. The
sink is the ONLY mutable thing those threads share, so all writes go
through a single lock:

    Thread A ──┐
    Thread B ──┼──► [ lock ] ──► FileHandler ──► minihttpd.log
    Thread C ──┘                 StreamHandler ─► stdout

logging.Handler has a lock of its own, but that lock is per handler. The
outer lock makes "file line + console line" one unit, so the two outputs
always list entries in the same order.

=============================================================================
FAILURE POLICY
=============================================================================

If the file cannot be written (disk full, directory gone, permissions)
the error is printed to stderr and the request carries on. Logging never
breaks serving.

=============================================================================
"""

import logging
import os
import sys
import threading
import time
from typing import Optional


class UTCFormatter(logging.Formatter):
    """Formatter that stamps records in UTC instead of local time."""

    converter = time.gmtime


class AppendFileHandler(logging.FileHandler):
    """
    FileHandler that reports write failures as a single console line.

    The stock handleError() prints a full traceback for every failed
    record; one line is enough to tell the operator the log is broken.
    """

    def __init__(self, filename: str):
        # delay=True: don't open until the first record, so a bad path
        # surfaces through handleError() instead of the constructor
        super().__init__(filename, mode="a", encoding="utf-8", delay=True)

    def emit(self, record: logging.LogRecord) -> None:
        # FileHandler opens a delayed stream outside its own try block
        try:
            super().emit(record)
        except OSError:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        error = sys.exc_info()[1]
        print(f"Error writing to logfile: {error}", file=sys.stderr)


class ServerLog:
    """
    Thread-safe request log.

    Usage:
        log = ServerLog("minihttpd.log")
        log.write("127.0.0.1:5000 /index.html 10 200")
        log.close()

    Args:
        path: Log file (opened in append mode). None = console only.
        echo: Also print each entry to stdout.
        name: Logger name. Each ServerLog owns its logger's handlers.
              Defaults to one name per log file, so servers writing to
              different files never detach each other's handlers.
    """

    FORMAT = "%(asctime)s %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(
        self,
        path: Optional[str],
        echo: bool = True,
        name: Optional[str] = None,
    ):
        self.path = path
        if name is None:
            name = self.default_name(path)
        self._lock = threading.Lock()

        formatter = UTCFormatter(self.FORMAT, datefmt=self.DATE_FORMAT)

        # propagate=False: entries must not also reach the root logger's
        # handlers, or the console would show them twice
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._close_handlers()

        if path:
            file_handler = AppendFileHandler(path)
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

        if echo:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            self._logger.addHandler(console_handler)

    @staticmethod
    def default_name(path: Optional[str]) -> str:
        """Logger name for a log file: "minihttpd.requests" plus its absolute path."""
        if not path:
            return "minihttpd.requests"
        return f"minihttpd.requests:{os.path.abspath(path)}"

    def write(self, message: str) -> None:
        """Append one entry. Safe to call from any thread."""
        # One physical line per entry, whatever the message contains
        message = message.replace("\r", " ").replace("\n", " ")
        with self._lock:
            self._logger.info(message)

    def close(self) -> None:
        """Flush and detach the handlers."""
        with self._lock:
            self._close_handlers()

    def _close_handlers(self) -> None:
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
