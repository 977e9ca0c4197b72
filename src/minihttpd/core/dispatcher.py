"""
=============================================================================
CONNECTION DISPATCHERS
=============================================================================

The accept loop must never wait on request processing. A dispatcher takes
an accepted connection and runs the handler for it SOMEWHERE ELSE:

    Listener                       Dispatcher
    ────────                       ──────────
    accept() ──► conn ──► dispatch(handler, conn) ──► returns immediately
    accept() ──► ...                    │
                                        └──► handler(conn) runs concurrently

=============================================================================
TWO STRATEGIES
=============================================================================

    ThreadPerConnectionDispatcher (default)
    ───────────────────────────────────────
    One new daemon thread per connection. No limit, no queue. Simple and
    low latency, but 10,000 slow clients means 10,000 threads.

    WorkerPoolDispatcher (max_workers=N)
    ────────────────────────────────────
    N long-lived workers pulling connections from a queue:

        dispatch() ──► [ conn | conn | conn ] ──► Worker-1
                                              ──► Worker-2
                                              ──► Worker-N

    Memory is bounded by N; excess connections wait in the queue (and in
    the kernel's listen backlog behind it).

Protocol code only sees the dispatch() interface, so swapping strategies
never touches request handling.

=============================================================================
"""

import queue
import logging
import threading
from typing import Callable, List, Optional

from .connection import Connection


logger = logging.getLogger(__name__)

Handler = Callable[[Connection], None]


class ConnectionDispatcher:
    """Interface: run handler(conn) concurrently with the accept loop."""

    def start(self) -> None:
        pass

    def dispatch(self, handler: Handler, conn: Connection) -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        pass


class ThreadPerConnectionDispatcher(ConnectionDispatcher):
    """
    Spawn one thread per connection.

    daemon=True: an in-flight client never keeps the process alive after
    the main thread exits.
    """

    def __init__(self):
        self._count = 0

    def dispatch(self, handler: Handler, conn: Connection) -> None:
        self._count += 1
        thread = threading.Thread(
            target=handler,
            args=(conn,),
            name=f"Connection-{self._count}",
            daemon=True,
        )
        thread.start()


class Worker(threading.Thread):
    """
    Pool worker: pull (handler, conn) tasks until a None poison pill.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. task = queue.get()          (blocks)                           │
    │   2. task is None → exit                                            │
    │   3. handler(conn)               (errors logged, worker survives)   │
    │   4. queue.task_done() → back to 1                                  │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")
        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                handler, conn = task
                handler(conn)
            except Exception as e:
                # Handlers contain their own faults; this is a last resort
                logger.exception(f"Worker {self.worker_id} task failed: {e}")
            finally:
                self.task_queue.task_done()
        logger.debug(f"Worker {self.worker_id} stopped")


class WorkerPoolDispatcher(ConnectionDispatcher):
    """
    Fixed-size pool of worker threads fed by an unbounded queue.

    Usage:
        pool = WorkerPoolDispatcher(max_workers=8)
        pool.start()
        pool.dispatch(handler.handle, conn)
        pool.shutdown()
    """

    def __init__(self, max_workers: int):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self._task_queue: queue.Queue = queue.Queue()
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._shutdown = False

    def start(self) -> None:
        with self._lock:
            if self._workers:
                return  # Already started
            logger.info(f"Starting worker pool with {self.max_workers} workers")
            for worker_id in range(1, self.max_workers + 1):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

    def dispatch(self, handler: Handler, conn: Connection) -> None:
        if self._shutdown:
            raise RuntimeError("Worker pool is shutting down")
        if not self._workers:
            self.start()
        self._task_queue.put((handler, conn))

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the workers once the queued connections are handled.

        One poison pill per worker goes in BEHIND the queued tasks, so
        everything already dispatched still gets served.
        """
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            for _ in self._workers:
                self._task_queue.put(None)

        if wait:
            for worker in self._workers:
                worker.join(timeout)


def create_dispatcher(max_workers: Optional[int]) -> ConnectionDispatcher:
    """None → thread per connection; N → pool of N workers."""
    if max_workers is None:
        return ThreadPerConnectionDispatcher()
    return WorkerPoolDispatcher(max_workers)
