"""Replay a parsed script into a PTY with human-like timing."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Protocol

from .cancel import CancellationFlag
from .types import Command, PlaybackConfig, Script, SetJitter, SetShell, SetSize, SetSpeed, Type, Wait

logger = logging.getLogger(__name__)

ESC = "\x1b"


class KeystrokeSink(Protocol):
    """What the engine needs from the PTY side."""

    def send_keystroke(self, data: str | bytes) -> None: ...

    def send_char(self, char: str) -> None: ...


@dataclass(slots=True)
class PlaybackResult:
    commands_executed: int = 0
    units_sent: int = 0
    cancelled: bool = False


def escape_sequence_length(text: str, start: int = 0) -> int:
    """Length of the escape sequence beginning at ``text[start]``.

    Recognises CSI (``ESC [ params final``), SS3 (``ESC O x``) and plain
    two-character ``ESC x`` forms. Anything that is not ESC counts as one.
    """

    remaining = len(text) - start
    if remaining <= 0 or text[start] != ESC:
        return 1
    if remaining == 1:
        return 1

    marker = text[start + 1]
    if marker == "[":
        index = start + 2
        while index < len(text) and (text[index] in "0123456789;"):
            index += 1
        if index < len(text):
            return index + 1 - start
        return remaining
    if marker == "O":
        return 3 if remaining >= 3 else remaining
    return 2


def split_units(text: str) -> Iterator[str]:
    """Yield the pieces of ``text`` that must each be sent in one write."""

    index = 0
    while index < len(text):
        if text[index] == ESC:
            length = escape_sequence_length(text, index)
        else:
            length = 1
        yield text[index:index + length]
        index += length


def calculate_delay_ms(config: PlaybackConfig, rng: random.Random | None = None) -> int:
    """Milliseconds to pause after one unit.

    With jitter the result is uniform over ``base +/- base * jitter``,
    floored at zero.
    """

    base_ms = max(0, int(config.speed * 1000))
    jitter_ms = max(0, int(base_ms * config.jitter))
    if jitter_ms > 0:
        variation = (rng or random).randint(0, jitter_ms * 2)
        return max(0, base_ms + variation - jitter_ms)
    return base_ms


class PlaybackEngine:
    """Execute script commands in order against a :class:`KeystrokeSink`."""

    def __init__(
        self,
        sink: KeystrokeSink,
        *,
        config: PlaybackConfig | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._sink = sink
        self._config = config or PlaybackConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._flag = CancellationFlag()

    @property
    def config(self) -> PlaybackConfig:
        return self._config

    @property
    def cancel(self) -> Callable[[], None]:
        """Setter that stops playback at the next unit boundary."""

        return self._flag.cancel

    def should_continue(self) -> bool:
        return self._flag.should_continue()

    async def execute(self, script: Script) -> PlaybackResult:
        result = PlaybackResult()
        for command in script:
            if not self.should_continue():
                break
            await self._execute_command(command, result)
            result.commands_executed += 1

        if not self.should_continue():
            result.cancelled = True
            logger.info("Playback cancelled after %d keystrokes", result.units_sent)
        else:
            logger.debug(
                "Playback finished: %d commands, %d keystrokes",
                result.commands_executed,
                result.units_sent,
            )
        return result

    async def _execute_command(self, command: Command, result: PlaybackResult) -> None:
        logger.debug("Executing %r", command)
        if isinstance(command, SetSpeed):
            self._config.speed = command.seconds
        elif isinstance(command, SetJitter):
            self._config.jitter = command.fraction
        elif isinstance(command, Wait):
            await self._sleep(command.seconds)
        elif isinstance(command, (SetShell, SetSize)):
            # Both only matter when the PTY is created, before playback.
            pass
        elif isinstance(command, Type):
            await self._type(command.text, result)
        else:  # pragma: no cover - defensive guard
            msg = f"Unsupported command type: {type(command)!r}"
            raise TypeError(msg)

    async def _type(self, text: str, result: PlaybackResult) -> None:
        for unit in split_units(text):
            if not self.should_continue():
                return
            if unit.startswith(ESC):
                self._sink.send_keystroke(unit)
            else:
                self._sink.send_char(unit)
            result.units_sent += 1
            await self._sleep(calculate_delay_ms(self._config, self._rng) / 1000)
