"""
pytest configuration and fixtures.
"""

import socket
import threading
import uuid
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttpd import ServerConfig, ServerLog, StaticServer


INDEX_BODY = b"<p>hey</p>"  # 10 bytes


@pytest.fixture
def wwwroot(tmp_path: Path) -> Path:
    """A small document root."""
    root = tmp_path / "wwwroot"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_BODY)
    (root / "a.txt").write_bytes(b"plain text file\n")
    (root / "logo.PNG").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)))
    (root / "notes.bak").write_bytes(b"backup")
    (root / "docs").mkdir()
    (root / "docs" / "guide.html").write_bytes(b"<h1>guide</h1>")
    # Outside the document root, reachable with ".."
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def config(wwwroot: Path, tmp_path: Path) -> ServerConfig:
    """Test configuration: loopback, OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        document_root=str(wwwroot),
        log_file=str(tmp_path / "minihttpd.log"),
    )


@pytest.fixture
def server_log(tmp_path: Path) -> Generator[ServerLog, None, None]:
    """A request log writing to tmp_path, without console echo."""
    log = ServerLog(
        str(tmp_path / "requests.log"),
        echo=False,
        name=f"minihttpd.test.{uuid.uuid4().hex[:8]}",
    )
    yield log
    log.close()


def read_log(log: ServerLog) -> list:
    """Lines written so far to a ServerLog's file."""
    path = Path(log.path)
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


def fetch(port: int, raw: bytes, timeout: float = 5.0) -> bytes:
    """Send raw request bytes and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(raw)
        chunks = []
        while True:
            chunk = s.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(data: bytes) -> tuple:
    """(status line, headers dict, body) of a raw response."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("ascii").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


class RunningServer:
    """StaticServer running in a background thread."""

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    @property
    def log(self) -> ServerLog:
        return self.server.log

    def start(self):
        # Bind in the test thread so the port is known before serving
        self.server.start()
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def get(self, raw: bytes) -> bytes:
        return fetch(self.port, raw)


@pytest.fixture
def running_server(config: ServerConfig, server_log: ServerLog) -> Generator[RunningServer, None, None]:
    """A live server on a free port."""
    srv = RunningServer(StaticServer(config, log=server_log))
    srv.start()

    yield srv

    srv.stop()
