"""Replay scripted keystrokes into a shell running in a pseudo-terminal."""

from .cancel import CancellationFlag, SignalCancellation
from .dsl import dump_script, load_script, parse_script, resolve_key
from .errors import QuipuError, ScriptParseError, TransmissionError
from .orchestrator import ExecutionOrchestrator, ExecutionResult, SessionOptions
from .playback import (
    KeystrokeSink,
    PlaybackEngine,
    PlaybackResult,
    calculate_delay_ms,
    escape_sequence_length,
    split_units,
)
from .pty_runner import OutputPump, PtyExitStatus, PtySessionRunner, PtySize, RawModeGuard
from .types import (
    Command,
    PlaybackConfig,
    Script,
    SetJitter,
    SetShell,
    SetSize,
    SetSpeed,
    Type,
    Wait,
)

__all__ = [
    "CancellationFlag",
    "Command",
    "ExecutionOrchestrator",
    "ExecutionResult",
    "KeystrokeSink",
    "OutputPump",
    "PlaybackConfig",
    "PlaybackEngine",
    "PlaybackResult",
    "PtyExitStatus",
    "PtySessionRunner",
    "PtySize",
    "QuipuError",
    "RawModeGuard",
    "Script",
    "ScriptParseError",
    "SessionOptions",
    "SetJitter",
    "SetShell",
    "SetSize",
    "SetSpeed",
    "SignalCancellation",
    "TransmissionError",
    "Type",
    "Wait",
    "calculate_delay_ms",
    "dump_script",
    "escape_sequence_length",
    "load_script",
    "parse_script",
    "resolve_key",
    "split_units",
]
