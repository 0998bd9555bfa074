from __future__ import annotations

import pytest

from quipu import (
    Script,
    ScriptParseError,
    SetJitter,
    SetShell,
    SetSize,
    SetSpeed,
    Type,
    Wait,
    parse_script,
)
from quipu.dsl import expand_text, parse_line


def test_parse_script_scenario() -> None:
    script = parse_script("@ speed:0.2\n@ jitter:0.02\n# comment\n$ echo hi\n@ wait:1.0\n$ ls -la\n")

    assert isinstance(script, Script)
    assert list(script) == [
        SetSpeed(0.2),
        SetJitter(0.02),
        Type("echo hi"),
        Wait(1.0),
        Type("ls -la"),
    ]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("@ speed:0.2", SetSpeed(0.2)),
        ("@speed:1", SetSpeed(1.0)),
        ("@ \tspeed:.5", SetSpeed(0.5)),
        ("@ jitter:0.02", SetJitter(0.02)),
        ("@ jitter:1e-1", SetJitter(0.1)),
        ("@ wait:2.0", Wait(2.0)),
        ("@ shell:/bin/zsh", SetShell("/bin/zsh")),
        ("@ shell:  /usr/bin/env bash  ", SetShell("/usr/bin/env bash")),
        ("@ size:120:40", SetSize(120, 40)),
        ("@ speed:0.2   ", SetSpeed(0.2)),
    ],
)
def test_directives(line: str, expected: object) -> None:
    assert parse_line(line) == expected


def test_wait_exposes_timedelta() -> None:
    command = parse_line("@ wait:1.5")
    assert isinstance(command, Wait)
    assert command.duration.total_seconds() == 1.5


def test_comment_yields_nothing() -> None:
    assert parse_line("# just narration <ret>") is None


@pytest.mark.parametrize(
    ("source", "reason"),
    [
        ("@ speed:fast", "invalid number for speed"),
        ("@ speed: 0.2", "invalid number for speed"),
        ("@ speed:0.2 extra", "unexpected text after command"),
        ("@ size:80", "size expects"),
        ("@ size:80:x", "invalid number for size"),
        ("@ size:70000:24", "invalid number for size"),
        ("@ size:80:24:1", "unexpected text after command"),
        ("@ volume:11", "unknown directive"),
        ("@ wait:-1", "must not be negative"),
        ("@ speed:1e400", "invalid number for speed"),
        ("@ jitter:-1e400", "invalid number for jitter"),
        ("@ wait:1e400", "invalid number for wait"),
        ("echo hi", "unrecognised line"),
    ],
)
def test_malformed_lines(source: str, reason: str) -> None:
    with pytest.raises(ScriptParseError) as excinfo:
        parse_script(source)
    assert excinfo.value.line == 1
    assert reason in excinfo.value.reason


def test_error_cites_physical_line_number() -> None:
    source = "\n# intro\n\n$ echo ok\n   \n@ speed:nope\n$ never reached\n"
    with pytest.raises(ScriptParseError) as excinfo:
        parse_script(source)
    assert excinfo.value.line == 6
    assert str(excinfo.value).startswith("Line 6: ")


def test_crlf_and_indented_lines() -> None:
    script = parse_script("  @ speed:0.3\r\n\t$ pwd<ret>\r\n")
    assert list(script) == [SetSpeed(0.3), Type("pwd\r")]


def test_type_with_special_keys() -> None:
    assert parse_line("$ echo hello<ret>") == Type("echo hello\r")
    assert parse_line("$ <C-c>") == Type("\x03")
    assert parse_line("$ <A-ret>") == Type("\x1b\r")
    assert parse_line("$ <C-space>") == Type("\x00")


def test_type_escaped_brackets() -> None:
    assert parse_line("$ \\<not a key\\>") == Type("<not a key>")
    assert parse_line("$ \\<ret>") == Type("<ret>")


def test_type_without_space_and_empty() -> None:
    assert parse_line("$ls") == Type("ls")
    assert parse_line("$") == Type("")


def test_expand_text_handles_unclosed_and_unknown_brackets() -> None:
    assert expand_text("a < b") == "a < b"
    assert expand_text("if [ $a -lt 3 ]; then <nope>") == "if [ $a -lt 3 ]; then <nope>"
    assert expand_text("x <y <ret>") == "x <y <ret>"
    assert expand_text("<up><up><ret>") == "\x1b[A\x1b[A\r"


def test_expand_text_keeps_multibyte_characters() -> None:
    assert expand_text("café ☕<tab>") == "café ☕\t"


def test_backslash_alone_is_literal() -> None:
    assert expand_text("C:\\path\\n") == "C:\\path\\n"


def test_script_shell_and_size_helpers() -> None:
    script = parse_script("@ size:100:30\n@ shell:/bin/bash\n$ ls\n@ shell:/bin/zsh\n")
    assert script.shell == "/bin/bash"
    assert script.size == SetSize(100, 30)

    late = parse_script("$ ls\n@ shell:/bin/zsh\n")
    assert late.shell is None
    assert late.size is None
