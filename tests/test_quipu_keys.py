from __future__ import annotations

import string

import pytest

from quipu.dsl.keys import NAMED_KEYS, apply_modifiers, parse_combo, resolve_key


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("esc", "\x1b"),
        ("space", " "),
        ("ret", "\r"),
        ("return", "\r"),
        ("enter", "\r"),
        ("tab", "\t"),
        ("backspace", "\x7f"),
        ("bs", "\x7f"),
        ("F1", "\x1bOP"),
        ("F4", "\x1bOS"),
        ("F5", "\x1b[15~"),
        ("F6", "\x1b[17~"),
        ("F10", "\x1b[21~"),
        ("F11", "\x1b[23~"),
        ("F12", "\x1b[24~"),
        ("up", "\x1b[A"),
        ("down", "\x1b[B"),
        ("right", "\x1b[C"),
        ("left", "\x1b[D"),
        ("home", "\x1b[H"),
        ("end", "\x1b[F"),
        ("pgup", "\x1b[5~"),
        ("pagedown", "\x1b[6~"),
        ("ins", "\x1b[2~"),
        ("del", "\x1b[3~"),
    ],
)
def test_named_keys(spec: str, expected: str) -> None:
    assert resolve_key(spec) == expected


def test_function_keys_use_two_encodings() -> None:
    csi_numbers = [NAMED_KEYS[f"F{n}"][2:-1] for n in range(5, 13)]
    assert csi_numbers == ["15", "17", "18", "19", "20", "21", "23", "24"]
    assert all(NAMED_KEYS[f"F{n}"].startswith("\x1bO") for n in range(1, 5))


@pytest.mark.parametrize("letter", list(string.ascii_lowercase))
def test_ctrl_letters_map_to_control_codes(letter: str) -> None:
    assert resolve_key(f"C-{letter}") == chr(ord(letter) - ord("a") + 1)


def test_ctrl_aliases_and_uppercase_letter() -> None:
    assert resolve_key("Ctrl-c") == "\x03"
    assert resolve_key("ctrl-a") == "\x01"
    assert resolve_key("C-C") == "\x03"


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("C-space", "\x00"),
        ("C-[", "\x1b"),
        ("C-]", "\x1d"),
        ("C-\\", "\x1c"),
    ],
)
def test_ctrl_special_characters(spec: str, expected: str) -> None:
    assert resolve_key(spec) == expected


def test_ctrl_named_key_without_encoding_falls_back() -> None:
    assert resolve_key("C-ret") == "<C-ret>"
    assert resolve_key("C-F5") == "<C-F5>"
    assert resolve_key("C-1") == "<C-1>"


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("A-x", "\x1bx"),
        ("M-b", "\x1bb"),
        ("Meta-f", "\x1bf"),
        ("alt-.", "\x1b."),
        ("A-ret", "\x1b\r"),
        ("A-space", "\x1b "),
        ("A-up", "\x1b\x1b[A"),
        ("A-S-x", "\x1bx"),
    ],
)
def test_alt_prefixes_escape(spec: str, expected: str) -> None:
    assert resolve_key(spec) == expected


def test_shift_uppercases_single_characters() -> None:
    assert resolve_key("S-a") == "A"
    assert resolve_key("Shift-z") == "Z"
    assert resolve_key("S-tab") == "<S-tab>"


def test_ctrl_shift_letter() -> None:
    assert resolve_key("C-S-a") == "\x01"
    assert resolve_key("C-S-1") == "<C-S-1>"


@pytest.mark.parametrize("spec", ["C-K", "C-S-ı", "C-A-K"])
def test_non_ascii_letters_have_no_control_code(spec: str) -> None:
    # Kelvin sign lowercases to "k" and dotless i uppercases to "I".
    assert resolve_key(spec) == f"<{spec}>"


def test_ctrl_alt_combinations() -> None:
    assert resolve_key("C-A-x") == "\x1b\x18"
    assert resolve_key("C-M-a") == "\x1b\x01"
    assert resolve_key("C-A-S-b") == "\x1b\x02"
    assert resolve_key("C-A-del") == "\x1b\x1b[3~"
    assert resolve_key("C-A-1") == "<C-A-1>"


@pytest.mark.parametrize("spec", ["nope", "", "ctrl", "C-", "C-nope", "X-a", "a-b-c-word"])
def test_unknown_specs_are_kept_verbatim(spec: str) -> None:
    assert resolve_key(spec) == f"<{spec}>"


def test_parse_combo_collects_modifiers() -> None:
    combo = parse_combo("Ctrl-Alt-F5")
    assert combo is not None
    assert (combo.ctrl, combo.alt, combo.shift) == (True, True, False)
    assert combo.key == "F5"
    assert combo.base == "\x1b[15~"
    assert apply_modifiers(combo) == "\x1b\x1b[15~"


def test_parse_combo_rejects_unknown_base_key() -> None:
    assert parse_combo("C-nope") is None
