from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Mapping

from .cancel import SignalCancellation
from .dsl import load_script, parse_script
from .playback import PlaybackEngine, PlaybackResult
from .pty_runner import PtySessionRunner, PtySize
from .types import PlaybackConfig, Script

logger = logging.getLogger(__name__)

FALLBACK_SHELL = "/bin/sh"
COMPILED_SUFFIX = ".json"


@dataclass(slots=True)
class SessionOptions:
    """Overrides that take precedence over the script's own directives."""

    shell: str | None = None
    size: PtySize | None = None
    config: PlaybackConfig = field(default_factory=PlaybackConfig)
    env: Mapping[str, str] | None = None
    cwd: Path | None = None
    output: BinaryIO | None = None
    raw_mode: bool = True
    handle_signals: bool = True


@dataclass(slots=True)
class ExecutionResult:
    script: Script
    shell: str
    size: PtySize
    playback: PlaybackResult


def resolve_shell(script: Script, override: str | None = None) -> str:
    return override or script.shell or os.environ.get("SHELL") or FALLBACK_SHELL


def resolve_size(script: Script, override: PtySize | None = None) -> PtySize:
    if override is not None:
        return override
    if script.size is not None:
        return PtySize(cols=script.size.cols, rows=script.size.rows)
    columns, lines = shutil.get_terminal_size((80, 24))
    return PtySize(cols=columns, rows=lines)


class ExecutionOrchestrator:
    """High-level runner that ties script parsing with PTY playback."""

    def __init__(
        self,
        runner_factory: Callable[..., PtySessionRunner] = PtySessionRunner,
    ) -> None:
        self._runner_factory = runner_factory

    def load(self, source: Path | str) -> Script:
        """Parse script text, or read a script file.

        A ``.json`` path is taken to be the output of ``quipu --dump``.
        """

        if isinstance(source, Path) and source.suffix == COMPILED_SUFFIX:
            return load_script(source)
        if isinstance(source, Path):
            text = source.read_text(encoding="utf-8")
        else:
            text = source
        return parse_script(text)

    def execute(
        self,
        source: Path | str | Script,
        options: SessionOptions | None = None,
    ) -> ExecutionResult:
        options = options or SessionOptions()
        script = source if isinstance(source, Script) else self.load(source)
        shell = resolve_shell(script, options.shell)
        size = resolve_size(script, options.size)

        with self._runner_factory(
            shell,
            size=size,
            env=options.env,
            cwd=options.cwd,
            output=options.output,
            raw_mode=options.raw_mode,
        ) as session:
            engine = PlaybackEngine(session, config=options.config)
            if options.handle_signals:
                with SignalCancellation(engine.cancel):
                    playback = asyncio.run(engine.execute(script))
            else:
                playback = asyncio.run(engine.execute(script))

        return ExecutionResult(script=script, shell=shell, size=size, playback=playback)
