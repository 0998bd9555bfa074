from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

import jsonschema

from .dsl import dump_script
from .errors import ScriptParseError, TransmissionError
from .orchestrator import ExecutionOrchestrator, SessionOptions
from .pty_runner import PtySize
from .types import PlaybackConfig

logger = logging.getLogger(__name__)

_DEFAULTS = PlaybackConfig()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quipu",
        description="Type a scripted session into a shell, one keystroke at a time.",
    )
    parser.add_argument("script", nargs="?", default="-", help="script file, '-' for stdin")
    parser.add_argument("--shell", help="shell to run (overrides '@ shell:')")
    parser.add_argument("--cols", type=int, help="terminal width (overrides '@ size:')")
    parser.add_argument("--rows", type=int, help="terminal height (overrides '@ size:')")
    parser.add_argument("--speed", type=float, default=_DEFAULTS.speed,
                        help="initial seconds between keystrokes")
    parser.add_argument("--jitter", type=float, default=_DEFAULTS.jitter,
                        help="initial jitter as a fraction of --speed")
    parser.add_argument("--dump", action="store_true",
                        help="print the parsed script as JSON and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def _size_override(parser: argparse.ArgumentParser, args: argparse.Namespace) -> PtySize | None:
    if args.cols is None and args.rows is None:
        return None
    if args.cols is None or args.rows is None:
        parser.error("--cols and --rows must be given together")
    for value in (args.cols, args.rows):
        if not 0 < value <= 0xFFFF:
            parser.error(f"terminal size out of range: {value}")
    return PtySize(cols=args.cols, rows=args.rows)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    size = _size_override(parser, args)

    orchestrator = ExecutionOrchestrator()
    try:
        if args.script == "-":
            script = orchestrator.load(sys.stdin.read())
        else:
            script = orchestrator.load(Path(args.script))
    except OSError as exc:
        print(f"error: cannot read {args.script}: {exc}", file=sys.stderr)
        return 1
    except ScriptParseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"error: {args.script} is not valid JSON: {exc}", file=sys.stderr)
        return 1
    except jsonschema.ValidationError as exc:
        print(f"error: {args.script} is not a compiled script: {exc.message}", file=sys.stderr)
        return 1

    if args.dump:
        source = None if args.script == "-" else args.script
        json.dump(dump_script(script, source=source), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0

    options = SessionOptions(
        shell=args.shell,
        size=size,
        config=PlaybackConfig(speed=args.speed, jitter=args.jitter),
    )
    try:
        result = orchestrator.execute(script, options)
    except TransmissionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: cannot start shell: {exc}", file=sys.stderr)
        return 1

    logger.debug("Session with %s finished: %s", result.shell, result.playback)
    return 0
