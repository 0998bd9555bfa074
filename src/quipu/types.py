from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Iterator, Sequence


@dataclass(slots=True, frozen=True)
class SetSpeed:
    """Base delay between keystrokes, in seconds."""

    seconds: float


@dataclass(slots=True, frozen=True)
class SetJitter:
    """Random variation as a fraction of the base delay."""

    fraction: float


@dataclass(slots=True, frozen=True)
class Wait:
    seconds: float

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.seconds)


@dataclass(slots=True, frozen=True)
class SetShell:
    """Shell to spawn. Only honoured when it appears before any typing."""

    path: str


@dataclass(slots=True, frozen=True)
class SetSize:
    """Terminal dimensions, applied when the PTY is created."""

    cols: int
    rows: int


@dataclass(slots=True, frozen=True)
class Type:
    """Resolved text, special keys already expanded to their raw sequences."""

    text: str


Command = SetSpeed | SetJitter | Wait | SetShell | SetSize | Type


@dataclass(slots=True, frozen=True)
class Script:
    commands: tuple[Command, ...] = ()

    @classmethod
    def from_commands(cls, commands: Sequence[Command]) -> "Script":
        return cls(commands=tuple(commands))

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)

    @property
    def shell(self) -> str | None:
        """Shell requested before the first typed line, if any."""

        for command in self.commands:
            if isinstance(command, Type):
                return None
            if isinstance(command, SetShell):
                return command.path
        return None

    @property
    def size(self) -> SetSize | None:
        for command in self.commands:
            if isinstance(command, SetSize):
                return command
        return None


@dataclass(slots=True)
class PlaybackConfig:
    # Seconds between keystrokes.
    speed: float = 0.1
    # Fraction of ``speed`` used as +/- variation.
    jitter: float = 0.0
