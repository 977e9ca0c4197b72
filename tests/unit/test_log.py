"""
Unit tests for the shared request log.
"""

import re
import threading
import uuid
from datetime import datetime, timedelta, timezone

from minihttpd.log import ServerLog

from conftest import read_log


LINE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) (.*)$")


class TestServerLog:
    """Tests for ServerLog."""

    def test_line_format(self, server_log):
        server_log.write("127.0.0.1:5000 /index.html 10 200")

        lines = read_log(server_log)
        assert len(lines) == 1
        match = LINE_PATTERN.match(lines[0])
        assert match is not None
        assert match.group(2) == "127.0.0.1:5000 /index.html 10 200"

    def test_timestamp_is_utc(self, server_log):
        server_log.write("tick")

        stamp = LINE_PATTERN.match(read_log(server_log)[0]).group(1)
        logged = datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc)
        assert abs(datetime.now(timezone.utc) - logged) < timedelta(minutes=1)

    def test_appends(self, server_log):
        server_log.write("first")
        server_log.write("second")

        messages = [LINE_PATTERN.match(line).group(2) for line in read_log(server_log)]
        assert messages == ["first", "second"]

    def test_appends_to_existing_file(self, tmp_path):
        path = tmp_path / "existing.log"
        path.write_text("old line\n", encoding="utf-8")

        log = ServerLog(str(path), echo=False, name=f"minihttpd.test.{uuid.uuid4().hex[:8]}")
        log.write("new line")
        log.close()

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "old line"
        assert lines[1].endswith(" new line")

    def test_one_physical_line_per_entry(self, server_log):
        server_log.write("Unexpected error: ValueError('a\\nb')\nsecond\r\nthird")

        assert len(read_log(server_log)) == 1

    def test_console_echo(self, tmp_path, capsys):
        log = ServerLog(str(tmp_path / "echo.log"), name=f"minihttpd.test.{uuid.uuid4().hex[:8]}")
        log.write("hello console")
        log.close()

        assert "hello console" in capsys.readouterr().out

    def test_concurrent_writes_do_not_interleave(self, server_log):
        """N threads × M entries → N×M complete lines."""
        threads_count, per_thread = 16, 50
        barrier = threading.Barrier(threads_count)

        def worker(n: int):
            barrier.wait()
            for i in range(per_thread):
                server_log.write(f"thread-{n:02d} entry-{i:03d} " + "x" * 200)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        lines = read_log(server_log)
        assert len(lines) == threads_count * per_thread
        entry = re.compile(r"^thread-\d{2} entry-\d{3} x{200}$")
        assert all(entry.match(LINE_PATTERN.match(line).group(2)) for line in lines)

    def test_unwritable_file_reported_on_console(self, tmp_path, capsys):
        """A broken log file never raises into the caller."""
        bad_path = tmp_path / "no-such-dir" / "server.log"
        log = ServerLog(str(bad_path), name=f"minihttpd.test.{uuid.uuid4().hex[:8]}")

        log.write("still served")
        log.close()

        captured = capsys.readouterr()
        assert "Error writing to logfile" in captured.err
        assert "still served" in captured.out
        assert not bad_path.exists()

    def test_console_only(self, capsys):
        log = ServerLog(None, name=f"minihttpd.test.{uuid.uuid4().hex[:8]}")
        log.write("no file")
        log.close()

        assert "no file" in capsys.readouterr().out

    def test_reusing_name_replaces_handlers(self, tmp_path):
        """A second log with the same name does not double-write."""
        name = f"minihttpd.test.{uuid.uuid4().hex[:8]}"
        first = ServerLog(str(tmp_path / "one.log"), echo=False, name=name)
        second = ServerLog(str(tmp_path / "two.log"), echo=False, name=name)

        second.write("only here")
        first.close()
        second.close()

        assert not (tmp_path / "one.log").exists()
        assert (tmp_path / "two.log").read_text(encoding="utf-8").count("only here") == 1

    def test_default_names_keep_logs_apart(self, tmp_path):
        """Two logs on different files, created with default names, both keep writing."""
        first = ServerLog(str(tmp_path / "one.log"), echo=False)
        second = ServerLog(str(tmp_path / "two.log"), echo=False)
        try:
            first.write("to one")
            second.write("to two")
        finally:
            first.close()
            second.close()

        assert (tmp_path / "one.log").read_text(encoding="utf-8").endswith("to one\n")
        assert (tmp_path / "two.log").read_text(encoding="utf-8").endswith("to two\n")

    def test_default_name_follows_path(self, tmp_path):
        path = str(tmp_path / "access.log")

        assert ServerLog.default_name(path) == ServerLog.default_name(str(tmp_path) + "/./access.log")
        assert ServerLog.default_name(path) != ServerLog.default_name(str(tmp_path / "other.log"))
        assert ServerLog.default_name(None) == "minihttpd.requests"
