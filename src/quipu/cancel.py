from __future__ import annotations

import signal
from typing import Any, Callable, Iterable


class CancellationFlag:
    """Continue/stop flag read by playback and set from a signal handler.

    The state is a single attribute that is only ever rebound, so reads and
    writes are atomic and setting it never blocks.
    """

    def __init__(self) -> None:
        self._running = True

    def should_continue(self) -> bool:
        return self._running

    def cancel(self) -> None:
        self._running = False


class SignalCancellation:
    """Context manager that calls ``cancel`` when one of ``signals`` arrives.

    Only the setter is handed over, the handler never sees the flag itself.
    Previous handlers are restored on exit.
    """

    def __init__(
        self,
        cancel: Callable[[], None],
        signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        self._cancel = cancel
        self._signals = tuple(signals)
        self._previous: dict[int, Any] = {}

    def __enter__(self) -> "SignalCancellation":
        for signum in self._signals:
            self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _handle(self, signum: int, frame: Any) -> None:
        self._cancel()
