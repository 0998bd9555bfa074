"""JSON form of a parsed script.

``quipu --dump`` writes it and ``quipu script.json`` plays it back.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

from ..types import Command, Script, SetJitter, SetShell, SetSize, SetSpeed, Type, Wait
from .schema import validate_script


def dump_command(command: Command) -> dict[str, Any]:
    if isinstance(command, SetSpeed):
        return {"type": "speed", "seconds": command.seconds}
    if isinstance(command, SetJitter):
        return {"type": "jitter", "fraction": command.fraction}
    if isinstance(command, Wait):
        return {"type": "wait", "seconds": command.seconds}
    if isinstance(command, SetShell):
        return {"type": "shell", "path": command.path}
    if isinstance(command, SetSize):
        return {"type": "size", "cols": command.cols, "rows": command.rows}
    if isinstance(command, Type):
        return {"type": "type", "text": command.text}
    msg = f"Unsupported command type: {type(command)!r}"
    raise TypeError(msg)


def dump_script(script: Script, *, source: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"commands": [dump_command(command) for command in script]}
    if source is not None:
        payload["source"] = source
    return payload


def load_script(source: Path | dict[str, Any]) -> Script:
    if isinstance(source, Path):
        text = source.read_text(encoding="utf-8")
        data = json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)
    else:
        data = source
    validate_script(data)
    return Script.from_commands([_load_command(raw) for raw in data["commands"]])


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        _reject_constant(text)
    return value


def _reject_constant(name: str) -> Any:
    msg = f"non-finite number {name} in compiled script"
    raise ValueError(msg)


def _load_command(payload: dict[str, Any]) -> Command:
    kind = payload["type"]
    if kind == "speed":
        return SetSpeed(float(payload["seconds"]))
    if kind == "jitter":
        return SetJitter(float(payload["fraction"]))
    if kind == "wait":
        return Wait(float(payload["seconds"]))
    if kind == "shell":
        return SetShell(payload["path"])
    if kind == "size":
        return SetSize(int(payload["cols"]), int(payload["rows"]))
    if kind == "type":
        return Type(payload["text"])
    msg = f"Unsupported command kind: {kind}"
    raise ValueError(msg)
