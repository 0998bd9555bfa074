from __future__ import annotations

from pathlib import Path

import pytest


class RecordingSink:
    """Keystroke sink that remembers every write."""

    def __init__(self, fail_after: int | None = None) -> None:
        self.writes: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.fail_after = fail_after

    def send_keystroke(self, data: str | bytes) -> None:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        self._record("keystroke", text)

    def send_char(self, char: str) -> None:
        self._record("char", char)

    def _record(self, kind: str, text: str) -> None:
        from quipu import TransmissionError

        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            raise TransmissionError("PTY writer has been closed")
        self.writes.append(text)
        self.calls.append((kind, text))


class FakeClock:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self.on_sleep = None

    async def __call__(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))


@pytest.fixture()
def artifact_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
