"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    core/
    ├── listener.py     # Bind, listen, accept loop
    ├── connection.py   # One client socket: read lines, send, close once
    └── dispatcher.py   # Where handlers run: thread per connection or pool

=============================================================================
"""

from .listener import Listener
from .connection import Connection, ConnectionState
from .dispatcher import (
    ConnectionDispatcher,
    ThreadPerConnectionDispatcher,
    WorkerPoolDispatcher,
    create_dispatcher,
)

__all__ = [
    "Listener",
    "Connection",
    "ConnectionState",
    "ConnectionDispatcher",
    "ThreadPerConnectionDispatcher",
    "WorkerPoolDispatcher",
    "create_dispatcher",
]
