from __future__ import annotations

import errno
import fcntl
import logging
import os
import pty
import select
import selectors
import struct
import subprocess
import sys
import termios
import threading
import time
import tty
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Mapping, MutableMapping

from .errors import TransmissionError

logger = logging.getLogger(__name__)

DEFAULT_TERM = "xterm-256color"
EOF_CHAR = b"\x04"


def _acquire_controlling_tty() -> None:
    # Runs in the child after setsid(); makes the PTY deliver ^C and ^Z as signals.
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


@dataclass(slots=True)
class PtySize:
    """Terminal size descriptor."""

    cols: int = 80
    rows: int = 24


@dataclass(slots=True)
class PtyExitStatus:
    """Exit information for the shell running in the PTY."""

    returncode: int | None
    signal: int | None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and self.signal is None


class RawModeGuard:
    """Put a TTY into raw mode for the lifetime of the context.

    Does nothing when the stream is not a terminal, e.g. under a pipe or in
    tests.
    """

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._fd: int | None = None
        self._saved: list[Any] | None = None

    @property
    def enabled(self) -> bool:
        return self._saved is not None

    def __enter__(self) -> "RawModeGuard":
        try:
            fd = self._stream.fileno()
        except (AttributeError, ValueError, OSError):
            return self
        if not os.isatty(fd):
            return self
        self._fd = fd
        self._saved = termios.tcgetattr(fd)
        tty.setraw(fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        if self._fd is not None and self._saved is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        self._fd = None
        self._saved = None

    def discard_pending_input(self) -> None:
        """Drop terminal replies that arrived while the shell was running."""

        if self._fd is not None:
            termios.tcflush(self._fd, termios.TCIFLUSH)


class OutputPump(threading.Thread):
    """Background thread that copies PTY output to the controlling terminal."""

    def __init__(
        self,
        runner: "PtySessionRunner",
        output: BinaryIO,
        read_timeout: float,
    ) -> None:
        super().__init__(daemon=True, name="quipu-output")
        self._runner = runner
        self._output = output
        self._read_timeout = read_timeout
        self._stop_event = threading.Event()

    def run(self) -> None:  # noqa: D401 - standard thread run
        while not self._stop_event.is_set():
            try:
                chunk = self._runner.read(timeout=self._read_timeout)
            except TimeoutError:
                if not self._runner.is_running():
                    break
                continue
            if not chunk:
                break
            if not self._emit(chunk):
                return
        # Drain any remaining output after the shell exits.
        while True:
            try:
                chunk = self._runner.read(timeout=0.05)
            except TimeoutError:
                break
            if not chunk or not self._emit(chunk):
                break

    def _emit(self, chunk: bytes) -> bool:
        try:
            self._output.write(chunk)
            self._output.flush()
        except (OSError, ValueError):
            logger.debug("Output stream closed, stopping pump")
            return False
        return True

    def stop(self) -> None:
        self._stop_event.set()


class PtySessionRunner:
    """Context manager that runs a shell inside a PTY and forwards its output."""

    def __init__(
        self,
        shell: str,
        *,
        size: PtySize | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        output: BinaryIO | None = None,
        raw_mode: bool = True,
        read_chunk_size: int = 8192,
        read_timeout: float = 0.1,
        exit_timeout: float = 1.0,
    ) -> None:
        if not shell:
            msg = "Shell must not be empty"
            raise ValueError(msg)

        self._shell = shell
        self._env = self._prepare_env(env)
        self._cwd = cwd
        self._size = size or PtySize()
        self._output = output if output is not None else sys.stdout.buffer
        self._raw_mode = RawModeGuard() if raw_mode else None
        self._chunk_size = read_chunk_size
        self._read_timeout = read_timeout
        self._exit_timeout = exit_timeout

        self._master_fd: int | None = None
        self._slave_fd: int | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._pump: OutputPump | None = None
        self._selector = selectors.DefaultSelector()

    def __enter__(self) -> "PtySessionRunner":
        if self._raw_mode is not None:
            self._raw_mode.__enter__()

        master_fd, slave_fd = pty.openpty()
        self._master_fd = master_fd
        self._slave_fd = slave_fd

        os.set_blocking(master_fd, False)
        self._selector.register(master_fd, selectors.EVENT_READ)
        self._apply_winsize(self._size)

        try:
            self._process = subprocess.Popen(
                [self._shell],
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                env=self._env,
                cwd=str(self._cwd) if self._cwd is not None else None,
                start_new_session=True,
                preexec_fn=_acquire_controlling_tty,
                close_fds=True,
            )
        except OSError:
            self._close_fds()
            self._selector.close()
            if self._raw_mode is not None:
                self._raw_mode.__exit__(None, None, None)
            raise

        # Close the slave in parent process to avoid descriptor leaks.
        os.close(slave_fd)
        self._slave_fd = None
        logger.debug(
            "Spawned %s (pid %d) in a %dx%d PTY",
            self._shell,
            self._process.pid,
            self._size.cols,
            self._size.rows,
        )

        self._pump = OutputPump(self, self._output, self._read_timeout)
        self._pump.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        try:
            self._shutdown_process()
            if self._pump is not None:
                self._pump.stop()
                self._pump.join(timeout=2)
            # Give the parent terminal time to answer any queries from the shell.
            time.sleep(0.1)
            if self._raw_mode is not None:
                self._raw_mode.discard_pending_input()
        finally:
            self._close_fds()
            self._selector.close()
            self._process = None
            self._pump = None
            if self._raw_mode is not None:
                self._raw_mode.__exit__(exc_type, exc, tb)
            logger.debug("PTY session closed")

    @property
    def master_fd(self) -> int:
        if self._master_fd is None:
            msg = "Master FD is not initialised"
            raise RuntimeError(msg)
        return self._master_fd

    @property
    def process(self) -> subprocess.Popen[bytes]:
        if self._process is None:
            msg = "Process is not running"
            raise RuntimeError(msg)
        return self._process

    def read(self, timeout: float | None = None) -> bytes:
        """Read a chunk from the PTY master side.

        Returns ``b""`` once the shell side has gone away.
        """

        events = self._selector.select(timeout)
        if not events:
            raise TimeoutError("PTY read timed out")

        try:
            return os.read(self.master_fd, self._chunk_size)
        except BlockingIOError:
            raise TimeoutError("PTY read timed out") from None
        except OSError as exc:
            # Linux reports EIO on the master once the slave is closed.
            if exc.errno == errno.EIO:
                return b""
            raise

    def send_keystroke(self, data: str | bytes) -> None:
        """Write ``data`` to the shell as a single unit."""

        if self._master_fd is None:
            msg = "PTY writer has been closed"
            raise TransmissionError(msg)

        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        view = memoryview(payload)
        try:
            while view:
                try:
                    written = os.write(self._master_fd, view)
                except BlockingIOError:
                    select.select([], [self._master_fd], [], 1.0)
                    continue
                view = view[written:]
        except OSError as exc:
            msg = f"Failed to write to PTY: {exc}"
            raise TransmissionError(msg) from exc

    def send_char(self, char: str) -> None:
        if len(char) != 1:
            msg = f"send_char expects a single character, got {char!r}"
            raise ValueError(msg)
        self.send_keystroke(char.encode("utf-8"))

    def wait(self, timeout: float | None = None) -> PtyExitStatus:
        """Wait for the shell to finish."""

        proc = self.process
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:  # pragma: no cover - pass-through
            raise TimeoutError("Shell did not exit within timeout") from exc
        return self._exit_status(proc)

    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def _shutdown_process(self) -> None:
        if self._process is None:
            return
        if self._process.poll() is None:
            # End of input lets an idle interactive shell exit on its own.
            try:
                self.send_keystroke(EOF_CHAR)
            except TransmissionError:
                pass
            try:
                self._process.wait(timeout=self._exit_timeout)
            except subprocess.TimeoutExpired:
                self._process.terminate()
                try:
                    self._process.wait(timeout=self._exit_timeout)
                except subprocess.TimeoutExpired:
                    self._process.kill()
                    self._process.wait()
        status = self._exit_status(self._process)
        logger.debug("Shell exited: returncode=%s signal=%s", status.returncode, status.signal)

    def _close_fds(self) -> None:
        if self._master_fd is not None:
            self._selector.unregister(self._master_fd)
            os.close(self._master_fd)
        if self._slave_fd is not None:
            os.close(self._slave_fd)
        self._master_fd = None
        self._slave_fd = None

    def _apply_winsize(self, size: PtySize) -> None:
        if self._master_fd is None:
            msg = "PTY not initialised"
            raise RuntimeError(msg)

        packed = struct.pack("HHHH", size.rows, size.cols, 0, 0)
        fcntl.ioctl(self._master_fd, termios.TIOCSWINSZ, packed)
        if self._slave_fd is not None:
            fcntl.ioctl(self._slave_fd, termios.TIOCSWINSZ, packed)

    @staticmethod
    def _exit_status(proc: subprocess.Popen[bytes]) -> PtyExitStatus:
        returncode = proc.returncode
        if returncode is None:
            return PtyExitStatus(returncode=None, signal=None)
        if returncode < 0:
            return PtyExitStatus(returncode=None, signal=abs(returncode))
        return PtyExitStatus(returncode=returncode, signal=None)

    @staticmethod
    def _prepare_env(env: Mapping[str, str] | None) -> MutableMapping[str, str]:
        merged: MutableMapping[str, str] = dict(os.environ)
        merged["TERM"] = DEFAULT_TERM
        if env is not None:
            merged.update(env)
        return merged
