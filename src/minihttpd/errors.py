"""
=============================================================================
SERVER EXCEPTIONS
=============================================================================

Only two failures are raised as exceptions. Everything else that can go
wrong while serving (accept errors, unsupported methods, missing files,
dropped sends, an unwritable log file) is an OUTCOME that gets logged,
not an exception that escapes.

    StartupError     Could not bind/listen. Fatal, the server never serves.
    HTTPParseError   Malformed request. Contained to one connection.

=============================================================================
"""


class StartupError(OSError):
    """Raised when the listening socket cannot be bound."""


class HTTPParseError(ValueError):
    """
    Raised when a request cannot be read.

    Two situations produce it:

        1. A header line with no ":" separator
        2. A request line too short for the fixed-offset slicing
           (see request.split_request_line)

    The message quotes the offending line. The handler logs it and drops
    the connection without a response.
    """
