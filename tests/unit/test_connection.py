"""
Unit tests for the Connection wrapper.
"""

import socket
import threading
import time

import pytest

from minihttpd.core.connection import Connection, ConnectionState


@pytest.fixture
def pair():
    server_side, client_side = socket.socketpair()
    conn = Connection(socket=server_side, address=("192.0.2.10", 51515))
    yield conn, client_side
    conn.close()
    client_side.close()


class TestConnection:
    """Tests for reading, sending and closing."""

    def test_peer(self, pair):
        conn, _ = pair

        assert conn.client_ip == "192.0.2.10"
        assert conn.client_port == 51515
        assert conn.peer == "192.0.2.10:51515"

    def test_read_lines_crlf_and_lf(self, pair):
        conn, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: a\n\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert list(conn.lines()) == ["GET / HTTP/1.1", "Host: a", ""]

    def test_read_line_eof(self, pair):
        conn, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_line() is None

    def test_partial_last_line(self, pair):
        conn, client_side = pair
        client_side.sendall(b"GET / HT")
        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_line() == "GET / HT"
        assert conn.read_line() is None

    def test_send(self, pair):
        conn, client_side = pair

        assert conn.send(b"hello") is True
        assert client_side.recv(5) == b"hello"
        assert conn.state == ConnectionState.WRITING

    def test_close_is_idempotent(self, pair):
        conn, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert conn.is_connected is False

    def test_close_signals_eof_to_client(self, pair):
        conn, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        conn.close()

        assert client_side.recv(1024) == b""

    def test_send_after_close(self, pair):
        conn, client_side = pair
        client_side.shutdown(socket.SHUT_WR)
        conn.close()

        assert conn.send(b"late") is False

    def test_context_manager_closes_on_error(self, pair):
        conn, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        with pytest.raises(RuntimeError):
            with conn:
                raise RuntimeError("boom")

        assert conn.state == ConnectionState.CLOSED

    def test_timeout_applied(self):
        server_side, client_side = socket.socketpair()
        conn = Connection(socket=server_side, address=("127.0.0.1", 1), timeout=0.2)
        try:
            assert server_side.gettimeout() == 0.2
            with pytest.raises(socket.timeout):
                conn.read_line()
        finally:
            client_side.shutdown(socket.SHUT_WR)
            conn.close()
            client_side.close()

    def test_close_bounded_while_client_keeps_sending(self, pair):
        conn, client_side = pair
        stop = threading.Event()

        def stream():
            try:
                while not stop.is_set():
                    client_side.sendall(b"x" * 4096)
            except OSError:
                pass  # Server side closed

        sender = threading.Thread(target=stream, daemon=True)
        sender.start()
        try:
            started = time.monotonic()
            conn.close()
            elapsed = time.monotonic() - started
        finally:
            stop.set()
            sender.join(timeout=5.0)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < Connection.DRAIN_TIMEOUT + 1.0
