"""Run the target program and capture its output incrementally.

Each output pipe gets its own reader thread pushing chunks onto its own
queue, so a flood on stderr never blocks stdout (and vice versa). The
foreground (UI loop or caller) calls RunHandle.drain() to move new
chunks into the run's CapturedOutput record; only the foreground touches
that record.

Example:
    >>> handle = run(["python", "-c", "print('hello')"])
    >>> status = handle.wait()
    >>> handle.output.text()
    'hello\\n'
    >>> status.success
    True
"""

from __future__ import annotations

import codecs
import itertools
import logging
import os
import queue
import signal
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from typing import IO, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from argform.lib.errors import LaunchError, StreamReadError

logger = logging.getLogger(__name__)

__all__ = [
    "CHUNK_SIZE",
    "OutputStream",
    "OutputChunk",
    "CapturedOutput",
    "ExitKind",
    "ExitStatus",
    "StdinSource",
    "RunHandle",
    "run",
]

CHUNK_SIZE = 8192
CANCEL_GRACE_PERIOD = 3.0


class OutputStream(str, Enum):
    """Which child pipe a chunk came from."""

    OUT = "out"
    ERR = "err"


@dataclass(frozen=True)
class OutputChunk:
    """One read from a child pipe.

    Attributes:
        stream: Source pipe
        data: Raw bytes as read
        text: UTF-8 text decoded incrementally per stream, so a character
            split across two reads ends up whole in the later chunk
        seq: Arrival order across both streams
    """

    stream: OutputStream
    data: bytes
    text: str
    seq: int


class CapturedOutput:
    """Append-only log of one run's output chunks.

    Appended to by RunHandle.drain() on the foreground only; everything
    else reads snapshots.
    """

    def __init__(self) -> None:
        self._chunks: List[OutputChunk] = []

    def append(self, chunk: OutputChunk) -> None:
        self._chunks.append(chunk)

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[OutputChunk]:
        return iter(tuple(self._chunks))

    @property
    def chunks(self) -> Tuple[OutputChunk, ...]:
        """Immutable snapshot of the chunks captured so far."""
        return tuple(self._chunks)

    def for_stream(self, stream: OutputStream) -> Tuple[OutputChunk, ...]:
        return tuple(c for c in self._chunks if c.stream == stream)

    def text(self, stream: Optional[OutputStream] = None) -> str:
        """Decoded text in arrival order, optionally for one stream only."""
        chunks = self._chunks if stream is None else self.for_stream(stream)
        return "".join(c.text for c in chunks)

    def data(self, stream: OutputStream) -> bytes:
        """Raw bytes of one stream."""
        return b"".join(c.data for c in self.for_stream(stream))


class ExitKind(str, Enum):
    """How a run ended."""

    SUCCESS = "success"
    FAILURE = "failure"  # Non-zero exit code
    SIGNALLED = "signalled"  # Killed by a signal we did not send
    CANCELLED = "cancelled"  # Terminated at the user's request


@dataclass(frozen=True)
class ExitStatus:
    """Final status of a run."""

    kind: ExitKind
    code: Optional[int] = None
    signal: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.kind == ExitKind.SUCCESS

    @classmethod
    def from_returncode(cls, returncode: int, *, cancelled: bool = False) -> "ExitStatus":
        signal = -returncode if returncode < 0 else None
        if returncode == 0:
            return cls(ExitKind.SUCCESS, code=0)
        if cancelled:
            return cls(ExitKind.CANCELLED, code=returncode, signal=signal)
        if signal is not None:
            return cls(ExitKind.SIGNALLED, code=returncode, signal=signal)
        return cls(ExitKind.FAILURE, code=returncode)

    def __str__(self) -> str:
        if self.kind == ExitKind.SUCCESS:
            return "exited successfully"
        if self.kind == ExitKind.CANCELLED:
            return "cancelled"
        if self.kind == ExitKind.SIGNALLED:
            return f"killed by signal {self.signal}"
        return f"exited with code {self.code}"


@dataclass(frozen=True)
class StdinSource:
    """What to feed the child on stdin: literal text or a file."""

    content: Optional[str] = None
    path: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "StdinSource":
        return cls(content=text)

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "StdinSource":
        return cls(path=os.fspath(path))


class _StreamReader(threading.Thread):
    """Background reader for one child pipe."""

    def __init__(
        self,
        stream: OutputStream,
        pipe: IO[bytes],
        sink: "queue.Queue[Union[OutputChunk, StreamReadError]]",
        counter: Iterator[int],
        stop: threading.Event,
    ) -> None:
        super().__init__(name=f"argform-{stream.value}-reader", daemon=True)
        self.stream = stream
        self._pipe = pipe
        self._sink = sink
        self._counter = counter
        self._stop_event = stop

    def run(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while not self._stop_event.is_set():
                data = self._pipe.read1(CHUNK_SIZE)  # type: ignore[attr-defined]
                if not data:
                    break
                text = decoder.decode(data)
                self._sink.put(OutputChunk(self.stream, data, text, next(self._counter)))

            tail = decoder.decode(b"", final=True)
            if tail:
                self._sink.put(OutputChunk(self.stream, b"", tail, next(self._counter)))
        except (OSError, ValueError) as e:
            logger.warning("Error reading child %s: %s", self.stream.value, e)
            self._sink.put(
                StreamReadError(
                    f"Reading {self.stream.value} failed",
                    stream=self.stream.value,
                    cause=e,
                )
            )
        finally:
            try:
                self._pipe.close()
            except OSError as e:
                logger.debug("Closing %s pipe failed: %s", self.stream.value, e)


def _write_stdin(pipe: IO[bytes], content: str) -> None:
    try:
        pipe.write(content.encode("utf-8"))
    except BrokenPipeError:
        logger.debug("Child closed stdin before reading all input")
    finally:
        try:
            pipe.close()
        except OSError as e:
            logger.debug("Closing stdin pipe failed: %s", e)


class RunHandle:
    """A running (or finished) child process and its captured output.

    Attributes:
        argv: Full command line including the program
        process: Underlying Popen object
        output: CapturedOutput record for this run
        read_errors: Stream read errors seen so far (the run continues)
    """

    def __init__(
        self,
        process: "subprocess.Popen[bytes]",
        argv: Sequence[str],
        *,
        stdin_text: Optional[str] = None,
    ) -> None:
        self.argv = list(argv)
        self.process = process
        self.output = CapturedOutput()
        self.read_errors: List[StreamReadError] = []

        self._cancelled = False
        self._exit_status: Optional[ExitStatus] = None
        self._stop = threading.Event()
        self._canceller: Optional[threading.Thread] = None
        self._readers_abandoned = False
        self._counter = itertools.count()
        self._queues: Dict[OutputStream, "queue.Queue[Union[OutputChunk, StreamReadError]]"] = {
            OutputStream.OUT: queue.Queue(),
            OutputStream.ERR: queue.Queue(),
        }

        self._readers = [
            _StreamReader(stream, pipe, self._queues[stream], self._counter, self._stop)
            for stream, pipe in (
                (OutputStream.OUT, process.stdout),
                (OutputStream.ERR, process.stderr),
            )
            if pipe is not None
        ]
        for reader in self._readers:
            reader.start()

        self._writer: Optional[threading.Thread] = None
        if stdin_text is not None and process.stdin is not None:
            self._writer = threading.Thread(
                target=_write_stdin,
                args=(process.stdin, stdin_text),
                name="argform-stdin-writer",
                daemon=True,
            )
            self._writer.start()

    def __repr__(self) -> str:
        return f"RunHandle(pid={self.pid}, status={self._exit_status})"

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def drain(self) -> List[OutputChunk]:
        """Move newly arrived chunks into the output record.

        Returns:
            The new chunks, in arrival order
        """
        new: List[OutputChunk] = []
        for sink in self._queues.values():
            while True:
                try:
                    item = sink.get_nowait()
                except queue.Empty:
                    break
                if isinstance(item, StreamReadError):
                    self.read_errors.append(item)
                else:
                    new.append(item)

        new.sort(key=lambda chunk: chunk.seq)
        for chunk in new:
            self.output.append(chunk)
        return new

    def poll(self) -> Optional[ExitStatus]:
        """Exit status if the child has exited, else None. Never blocks."""
        if self._exit_status is None:
            returncode = self.process.poll()
            if returncode is not None:
                self._set_exit(returncode)
        return self._exit_status

    @property
    def is_running(self) -> bool:
        return self.poll() is None

    @property
    def finished(self) -> bool:
        """Child exited and both readers reached end of stream.

        After a cancel whose group could not be reaped, readers still stuck
        on an open pipe are given up on and no longer count.
        """
        if self.poll() is None:
            return False
        return self._readers_abandoned or not any(r.is_alive() for r in self._readers)

    def wait(self, timeout: Optional[float] = None) -> ExitStatus:
        """Block until the child exits and its output is captured.

        Raises:
            subprocess.TimeoutExpired: The child is still running after timeout
        """
        returncode = self.process.wait(timeout)
        if self._canceller is not None:
            self._canceller.join(timeout)
        if not self._readers_abandoned:
            for reader in self._readers:
                reader.join(timeout)
        self.drain()
        if self._exit_status is None:
            self._set_exit(returncode)
        return self._exit_status  # type: ignore[return-value]

    def cancel(self, grace_period: float = CANCEL_GRACE_PERIOD) -> None:
        """Terminate the child's process group and stop the readers.

        Returns at once; a background thread waits grace_period seconds
        after SIGTERM, kills whatever is left of the group and waits for
        the readers. Output captured before cancellation stays in the
        record. Also reaps a group whose leader already exited while a
        grandchild still holds the output pipes.
        """
        if self.finished or self._canceller is not None:
            return

        self._cancelled = True
        self._stop.set()
        logger.info("Cancelling pid %d", self.pid)
        self._signal_group(force=False)

        self._canceller = threading.Thread(
            target=self._finish_cancel,
            args=(grace_period,),
            name="argform-canceller",
            daemon=True,
        )
        self._canceller.start()

    def _finish_cancel(self, grace_period: float) -> None:
        try:
            self.process.wait(grace_period)
        except subprocess.TimeoutExpired:
            logger.warning("pid %d ignored terminate, killing it", self.pid)
            self._signal_group(force=True)
            self.process.wait()

        if self._join_readers(grace_period):
            return
        # Leftover members of the group still hold the pipes open
        self._signal_group(force=True)
        if not self._join_readers(grace_period):
            logger.warning(
                "Output pipes of pid %d still open after cancel, abandoning readers", self.pid
            )
            self._readers_abandoned = True

    def _join_readers(self, timeout: float) -> bool:
        for reader in self._readers:
            reader.join(timeout)
        return not any(r.is_alive() for r in self._readers)

    def _signal_group(self, force: bool) -> None:
        try:
            if os.name == "posix":
                os.killpg(self.pid, signal.SIGKILL if force else signal.SIGTERM)
            elif force:
                self.process.kill()
            else:
                self.process.terminate()
        except (ProcessLookupError, PermissionError):
            logger.debug("pid %d already gone", self.pid)

    def _set_exit(self, returncode: int) -> None:
        self._exit_status = ExitStatus.from_returncode(returncode, cancelled=self._cancelled)
        logger.info("%s %s", self.argv[0], self._exit_status)


def run(
    argv: Sequence[str],
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Union[str, os.PathLike]] = None,
    stdin: Optional[StdinSource] = None,
) -> RunHandle:
    """Launch a program and start capturing its output.

    Args:
        argv: Program followed by its arguments
        env: Variables overriding the current environment for the child
        cwd: Working directory for the child (current directory if None)
        stdin: Input for the child; the child gets /dev/null if None

    Returns:
        RunHandle for polling output and status

    Raises:
        LaunchError: The program is missing or cannot be executed, the
            working directory does not exist, or the stdin file is unreadable
    """
    if not argv:
        raise LaunchError("Nothing to run: the command line is empty")

    program = str(argv[0])
    if cwd is not None and str(cwd) != "" and not os.path.isdir(cwd):
        raise LaunchError(
            "Working directory does not exist",
            program=program,
            details={"cwd": os.fspath(cwd)},
        )

    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    stdin_arg: Union[int, IO[bytes]] = subprocess.DEVNULL
    stdin_file: Optional[IO[bytes]] = None
    stdin_text: Optional[str] = None
    if stdin is not None and stdin.path is not None:
        try:
            stdin_file = open(stdin.path, "rb")
        except OSError as e:
            raise LaunchError(
                "Cannot open stdin file",
                program=program,
                cause=e,
                details={"stdin": stdin.path},
                suggestion="Check the input file path.",
            ) from e
        stdin_arg = stdin_file
    elif stdin is not None and stdin.content is not None:
        stdin_arg = subprocess.PIPE
        stdin_text = stdin.content

    try:
        process = subprocess.Popen(
            [str(a) for a in argv],
            stdin=stdin_arg,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=child_env,
            cwd=os.fspath(cwd) if cwd else None,
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        logger.error("Failed to launch %s: %s", program, e)
        raise LaunchError(f"Failed to launch {program}", program=program, cause=e) from e
    finally:
        if stdin_file is not None:
            stdin_file.close()

    logger.info("Started %s (pid %d)", program, process.pid)
    return RunHandle(process, argv, stdin_text=stdin_text)
