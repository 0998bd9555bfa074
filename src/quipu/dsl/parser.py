"""Parser for quipu scripts.

A script is line oriented::

    @ speed:0.05        directive
    # narration         comment, ignored
    $ echo hi<ret>      text to type, with <key> expansion

Blank lines are skipped. The first malformed line aborts the parse with a
:class:`~quipu.errors.ScriptParseError` citing its 1-based line number.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable

from ..errors import ScriptParseError
from ..types import Command, Script, SetJitter, SetShell, SetSize, SetSpeed, Type, Wait
from .keys import resolve_key

logger = logging.getLogger(__name__)

_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_UINT_RE = re.compile(r"\d+")
_DIRECTIVE_RE = re.compile(r"@[ \t]*([a-z]+):")
_UINT16_MAX = 0xFFFF

# Each directive parser receives the text after ``keyword:`` and returns the
# command plus whatever text it did not consume.
DirectiveParser = Callable[[str], tuple[Command, str]]


class _LineError(ValueError):
    pass


def _take_float(text: str, name: str) -> tuple[float, str]:
    match = _FLOAT_RE.match(text)
    if match is None or not math.isfinite(float(match.group(0))):
        msg = f"invalid number for {name}: {text!r}"
        raise _LineError(msg)
    return float(match.group(0)), text[match.end():]


def _take_uint16(text: str, name: str) -> tuple[int, str]:
    match = _UINT_RE.match(text)
    if match is None or int(match.group(0)) > _UINT16_MAX:
        msg = f"invalid number for {name}: {text!r}"
        raise _LineError(msg)
    return int(match.group(0)), text[match.end():]


def _parse_speed(text: str) -> tuple[Command, str]:
    value, rest = _take_float(text, "speed")
    return SetSpeed(value), rest


def _parse_jitter(text: str) -> tuple[Command, str]:
    value, rest = _take_float(text, "jitter")
    return SetJitter(value), rest


def _parse_wait(text: str) -> tuple[Command, str]:
    value, rest = _take_float(text, "wait")
    if value < 0:
        msg = f"wait must not be negative: {value}"
        raise _LineError(msg)
    return Wait(value), rest


def _parse_shell(text: str) -> tuple[Command, str]:
    return SetShell(text.strip()), ""


def _parse_size(text: str) -> tuple[Command, str]:
    cols, rest = _take_uint16(text, "size")
    if not rest.startswith(":"):
        msg = f"size expects <cols>:<rows>, got {text!r}"
        raise _LineError(msg)
    rows, rest = _take_uint16(rest[1:], "size")
    return SetSize(cols, rows), rest


DIRECTIVES: dict[str, DirectiveParser] = {
    "speed": _parse_speed,
    "jitter": _parse_jitter,
    "wait": _parse_wait,
    "shell": _parse_shell,
    "size": _parse_size,
}


def parse_directive(line: str) -> Command:
    match = _DIRECTIVE_RE.match(line)
    if match is None or match.group(1) not in DIRECTIVES:
        msg = f"unknown directive: {line!r}"
        raise _LineError(msg)
    command, rest = DIRECTIVES[match.group(1)](line[match.end():])
    if rest.strip():
        msg = f"unexpected text after command: {rest!r}"
        raise _LineError(msg)
    return command


def expand_text(text: str) -> str:
    """Unescape ``\\<``/``\\>`` and replace ``<spec>`` with key sequences."""

    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\\" and text.startswith(("<", ">"), index + 1):
            out.append(text[index + 1])
            index += 2
        elif char == "<":
            close = text.find(">", index + 1)
            if close == -1:
                out.append(char)
                index += 1
            else:
                out.append(resolve_key(text[index + 1:close]))
                index = close + 1
        else:
            out.append(char)
            index += 1
    return "".join(out)


def parse_type_line(line: str) -> Type:
    return Type(expand_text(line[1:].lstrip(" \t")))


def parse_line(line: str) -> Command | None:
    """Classify one trimmed, non-empty line. Comments yield ``None``."""

    if line.startswith("@"):
        return parse_directive(line)
    if line.startswith("#"):
        return None
    if line.startswith("$"):
        return parse_type_line(line)
    msg = f"unrecognised line: {line!r}"
    raise _LineError(msg)


def parse_script(text: str) -> Script:
    commands: list[Command] = []
    for number, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip()
        if not line:
            continue
        try:
            command = parse_line(line)
        except _LineError as exc:
            raise ScriptParseError(number, str(exc)) from None
        if command is not None:
            commands.append(command)

    logger.debug("Parsed %d commands", len(commands))
    return Script.from_commands(commands)
