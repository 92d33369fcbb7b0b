"""Tests for argform/lib/runner.py - child processes and output capture.

Child processes are the current interpreter running an inline script.
"""

from __future__ import annotations

import itertools
import queue
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest

from argform.lib.errors import LaunchError, StreamReadError
from argform.lib.runner import (
    CapturedOutput,
    ExitKind,
    ExitStatus,
    OutputChunk,
    OutputStream,
    RunHandle,
    StdinSource,
    _StreamReader,
    run,
)

TIMEOUT = 30
SLEEPER = "import time; time.sleep(60)"


def python(code: str) -> list:
    return [sys.executable, "-c", code]


def wait_for_output(handle: RunHandle) -> None:
    deadline = time.monotonic() + TIMEOUT
    while not handle.output.text(OutputStream.OUT) and time.monotonic() < deadline:
        handle.drain()
        time.sleep(0.05)


def wait_until_finished(handle: RunHandle, timeout: float = 10) -> bool:
    deadline = time.monotonic() + timeout
    while not handle.finished and time.monotonic() < deadline:
        time.sleep(0.05)
    handle.drain()
    return handle.finished


class TestRun:
    """Tests for launching and capturing."""

    def test_hello(self) -> None:
        """A single line on stdout, nothing on stderr, success."""
        handle = run(python("print('hello')"))
        status = handle.wait(TIMEOUT)
        assert status.kind == ExitKind.SUCCESS
        assert status.success
        assert handle.output.text(OutputStream.OUT).strip() == "hello"
        assert handle.output.for_stream(OutputStream.ERR) == ()
        assert handle.finished

    def test_non_zero_exit(self) -> None:
        status = run(python("import sys; sys.exit(3)")).wait(TIMEOUT)
        assert status.kind == ExitKind.FAILURE
        assert status.code == 3
        assert str(status) == "exited with code 3"

    def test_streams_captured_separately(self) -> None:
        code = (
            "import sys\n"
            "for i in range(5):\n"
            "    print(f'out {i}', flush=True)\n"
            "    print(f'err {i}', file=sys.stderr, flush=True)\n"
        )
        handle = run(python(code))
        handle.wait(TIMEOUT)
        out = handle.output.text(OutputStream.OUT).splitlines()
        err = handle.output.text(OutputStream.ERR).splitlines()
        assert out == [f"out {i}" for i in range(5)]
        assert err == [f"err {i}" for i in range(5)]

    def test_stderr_flood_does_not_block(self) -> None:
        """A megabyte on stderr is read while stdout stays quiet."""
        code = "import sys; sys.stderr.write('x' * 1_000_000); sys.stderr.flush(); print('done')"
        handle = run(python(code))
        status = handle.wait(TIMEOUT)
        assert status.success
        assert len(handle.output.data(OutputStream.ERR)) == 1_000_000
        assert handle.output.text(OutputStream.OUT).strip() == "done"

    def test_sequence_numbers_increase(self) -> None:
        code = "import sys; print('a', flush=True); print('b', file=sys.stderr, flush=True)"
        handle = run(python(code))
        handle.wait(TIMEOUT)
        seqs = [chunk.seq for chunk in handle.output]
        assert seqs == sorted(seqs)
        assert len(set(seqs)) == len(seqs)

    def test_utf8_split_across_reads(self) -> None:
        """Multi-byte characters survive chunk boundaries."""
        code = (
            "import sys, time\n"
            "data = 'zażółć'.encode()\n"
            "sys.stdout.buffer.write(data[:3]); sys.stdout.flush(); time.sleep(0.2)\n"
            "sys.stdout.buffer.write(data[3:]); sys.stdout.flush()\n"
        )
        handle = run(python(code))
        handle.wait(TIMEOUT)
        assert handle.output.text(OutputStream.OUT) == "zażółć"

    def test_env_overrides(self) -> None:
        handle = run(
            python("import os; print(os.environ['ARGFORM_TEST_VAR'])"),
            env={"ARGFORM_TEST_VAR": "from-form"},
        )
        handle.wait(TIMEOUT)
        assert handle.output.text(OutputStream.OUT).strip() == "from-form"

    def test_cwd(self, tmp_path: Path) -> None:
        handle = run(python("import os; print(os.getcwd())"), cwd=tmp_path)
        handle.wait(TIMEOUT)
        assert Path(handle.output.text(OutputStream.OUT).strip()).resolve() == tmp_path.resolve()

    def test_drain_returns_only_new_chunks(self) -> None:
        handle = run(python("print('once')"))
        handle.wait(TIMEOUT)
        assert handle.drain() == []
        assert len(handle.output) >= 1


class TestStdin:
    """Tests for feeding the child."""

    def test_no_stdin_reads_empty(self) -> None:
        """Without a source the child sees end of file at once."""
        handle = run(python("import sys; print(repr(sys.stdin.read()))"))
        handle.wait(TIMEOUT)
        assert handle.output.text(OutputStream.OUT).strip() == "''"

    def test_text(self) -> None:
        handle = run(
            python("import sys; print(sys.stdin.read().upper())"),
            stdin=StdinSource.from_text("piped in"),
        )
        handle.wait(TIMEOUT)
        assert handle.output.text(OutputStream.OUT).strip() == "PIPED IN"

    def test_file(self, tmp_path: Path) -> None:
        source = tmp_path / "input.txt"
        source.write_text("line1\nline2\n", encoding="utf-8")
        handle = run(
            python("import sys; print(len(sys.stdin.readlines()))"),
            stdin=StdinSource.from_file(source),
        )
        handle.wait(TIMEOUT)
        assert handle.output.text(OutputStream.OUT).strip() == "2"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LaunchError, match="stdin"):
            run(python("pass"), stdin=StdinSource.from_file(tmp_path / "missing.txt"))


class TestLaunchErrors:
    """Tests for programs that never start."""

    def test_missing_program(self, tmp_path: Path) -> None:
        program = str(tmp_path / "no-such-program")
        with pytest.raises(LaunchError) as exc_info:
            run([program])
        assert exc_info.value.program == program
        assert isinstance(exc_info.value.cause, OSError)

    def test_missing_cwd(self, tmp_path: Path) -> None:
        with pytest.raises(LaunchError, match="Working directory"):
            run(python("pass"), cwd=tmp_path / "missing")

    def test_empty_argv(self) -> None:
        with pytest.raises(LaunchError):
            run([])


class TestCancel:
    """Tests for stopping a running child."""

    def test_cancel_running_child(self) -> None:
        handle = run(python("import time; print('started', flush=True); time.sleep(60)"))
        wait_for_output(handle)
        assert handle.is_running

        handle.cancel(grace_period=5)

        status = handle.wait(TIMEOUT)
        assert status.kind == ExitKind.CANCELLED
        assert handle.cancelled
        assert not handle.is_running
        assert handle.finished
        assert "started" in handle.output.text(OutputStream.OUT)

    def test_cancel_after_exit_is_a_no_op(self) -> None:
        handle = run(python("pass"))
        handle.wait(TIMEOUT)
        handle.cancel()
        assert handle.poll().kind == ExitKind.SUCCESS
        assert not handle.cancelled

    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")
    def test_cancel_stops_grandchild_holding_pipes(self) -> None:
        """A background grandchild inherits the pipes and dies with its group."""
        code = (
            f"import subprocess, sys, time\n"
            f"subprocess.Popen([sys.executable, '-c', {SLEEPER!r}])\n"
            f"print('started', flush=True)\n"
            f"time.sleep(60)\n"
        )
        handle = run(python(code))
        wait_for_output(handle)

        started = time.monotonic()
        handle.cancel(grace_period=0.5)
        assert time.monotonic() - started < 2

        assert wait_until_finished(handle)
        assert [reader.is_alive() for reader in handle._readers] == [False, False]
        assert handle.poll().kind == ExitKind.CANCELLED

    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")
    def test_cancel_after_leader_exit_reaps_grandchild(self) -> None:
        """The program exited but left a grandchild holding its output pipes."""
        code = (
            f"import subprocess, sys\n"
            f"subprocess.Popen([sys.executable, '-c', {SLEEPER!r}])\n"
            f"print('started', flush=True)\n"
        )
        handle = run(python(code))
        wait_for_output(handle)
        handle.process.wait(TIMEOUT)
        assert not handle.finished

        handle.cancel(grace_period=0.5)

        assert wait_until_finished(handle)
        assert handle.poll().kind == ExitKind.SUCCESS
        assert "started" in handle.output.text(OutputStream.OUT)


class TestExitStatus:
    """Tests for return code interpretation."""

    def test_success(self) -> None:
        assert ExitStatus.from_returncode(0) == ExitStatus(ExitKind.SUCCESS, code=0)

    def test_signalled(self) -> None:
        status = ExitStatus.from_returncode(-9)
        assert status.kind == ExitKind.SIGNALLED
        assert status.signal == 9
        assert str(status) == "killed by signal 9"

    def test_cancelled_wins_over_signal(self) -> None:
        status = ExitStatus.from_returncode(-15, cancelled=True)
        assert status.kind == ExitKind.CANCELLED
        assert str(status) == "cancelled"

    def test_cancelled_but_exited_cleanly(self) -> None:
        assert ExitStatus.from_returncode(0, cancelled=True).kind == ExitKind.SUCCESS


class TestCapturedOutput:
    """Tests for the output record."""

    def test_text_per_stream(self) -> None:
        record = CapturedOutput()
        record.append(OutputChunk(OutputStream.OUT, b"a", "a", 0))
        record.append(OutputChunk(OutputStream.ERR, b"b", "b", 1))
        record.append(OutputChunk(OutputStream.OUT, b"c", "c", 2))
        assert record.text() == "abc"
        assert record.text(OutputStream.OUT) == "ac"
        assert record.data(OutputStream.ERR) == b"b"
        assert len(record) == 3

    def test_snapshot_is_immutable(self) -> None:
        record = CapturedOutput()
        snapshot = record.chunks
        record.append(OutputChunk(OutputStream.OUT, b"a", "a", 0))
        assert snapshot == ()


class FailingPipe:
    """Pipe that yields one chunk, then fails like a broken descriptor."""

    def __init__(self) -> None:
        self.closed = False
        self._chunks = [b"partial "]

    def read1(self, size: int) -> bytes:
        if self._chunks:
            return self._chunks.pop(0)
        raise OSError(5, "Input/output error")

    def close(self) -> None:
        self.closed = True


class TestStreamReadErrors:
    """Tests for a pipe that fails in the middle of a run."""

    def test_reader_reports_error_after_data(self) -> None:
        pipe = FailingPipe()
        sink: queue.Queue = queue.Queue()
        reader = _StreamReader(OutputStream.ERR, pipe, sink, itertools.count(), threading.Event())
        reader.start()
        reader.join(TIMEOUT)

        first, second = sink.get_nowait(), sink.get_nowait()
        assert isinstance(first, OutputChunk)
        assert first.text == "partial "
        assert isinstance(second, StreamReadError)
        assert second.stream == "err"
        assert isinstance(second.cause, OSError)
        assert sink.empty()
        assert pipe.closed

    def test_run_continues_after_read_error(self) -> None:
        """The other stream and the exit status still arrive."""
        process = subprocess.Popen(
            python("print('out')"),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        real_stderr = process.stderr
        process.stderr = FailingPipe()
        try:
            handle = RunHandle(process, process.args)
            status = handle.wait(TIMEOUT)
        finally:
            real_stderr.close()

        assert status.success
        assert handle.finished
        assert handle.output.text(OutputStream.OUT).strip() == "out"
        assert handle.output.text(OutputStream.ERR) == "partial "
        assert [e.stream for e in handle.read_errors] == ["err"]
