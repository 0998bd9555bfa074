from __future__ import annotations


class QuipuError(Exception):
    """Base class for errors raised by quipu."""


class ScriptParseError(QuipuError):
    """A script line could not be parsed.

    ``line`` is 1-based and counts every physical line of the source,
    including blank and comment lines.
    """

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(f"Line {line}: {reason}")
        self.line = line
        self.reason = reason


class TransmissionError(QuipuError):
    """Writing a keystroke to the PTY failed or the PTY is already closed."""
