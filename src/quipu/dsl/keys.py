"""Translate ``<key>`` specifications into the bytes a terminal would send."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

ESC = "\x1b"

NAMED_KEYS: dict[str, str] = {
    "esc": ESC,
    "space": " ",
    "ret": "\r",
    "return": "\r",
    "enter": "\r",
    "tab": "\t",
    "backspace": "\x7f",
    "bs": "\x7f",
    # F1-F4 use SS3, F5-F12 use numbered CSI sequences.
    "F1": ESC + "OP",
    "F2": ESC + "OQ",
    "F3": ESC + "OR",
    "F4": ESC + "OS",
    "F5": ESC + "[15~",
    "F6": ESC + "[17~",
    "F7": ESC + "[18~",
    "F8": ESC + "[19~",
    "F9": ESC + "[20~",
    "F10": ESC + "[21~",
    "F11": ESC + "[23~",
    "F12": ESC + "[24~",
    "up": ESC + "[A",
    "down": ESC + "[B",
    "right": ESC + "[C",
    "left": ESC + "[D",
    "home": ESC + "[H",
    "end": ESC + "[F",
    "pageup": ESC + "[5~",
    "pgup": ESC + "[5~",
    "pagedown": ESC + "[6~",
    "pgdn": ESC + "[6~",
    "insert": ESC + "[2~",
    "ins": ESC + "[2~",
    "delete": ESC + "[3~",
    "del": ESC + "[3~",
}

_MODIFIER_ALIASES: dict[str, str] = {
    "c": "ctrl",
    "ctrl": "ctrl",
    "a": "alt",
    "m": "alt",
    "alt": "alt",
    "meta": "alt",
    "s": "shift",
    "shift": "shift",
}

_CTRL_PUNCTUATION: dict[str, str] = {
    "[": "\x1b",
    "]": "\x1d",
    "\\": "\x1c",
}


@dataclass(slots=True, frozen=True)
class KeyCombo:
    """A parsed ``mods-key`` specification."""

    spec: str
    key: str
    base: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def single(self) -> bool:
        return len(self.key) == 1

    @property
    def ctrl_only(self) -> bool:
        return self.ctrl and not self.alt and not self.shift

    @property
    def fallback(self) -> str:
        return f"<{self.spec}>"


def _control_code(letter: str) -> str | None:
    if not letter.isascii():
        return None
    lowered = letter.lower()
    if len(lowered) == 1 and "a" <= lowered <= "z":
        return chr(ord(lowered) - ord("a") + 1)
    return None


def _ctrl_letter(combo: KeyCombo) -> str | None:
    if combo.ctrl_only and combo.single:
        return _control_code(combo.key)
    return None


def _ctrl_space(combo: KeyCombo) -> str | None:
    if combo.ctrl_only and combo.key in (" ", "space"):
        return "\x00"
    return None


def _ctrl_punctuation(combo: KeyCombo) -> str | None:
    if combo.ctrl_only and combo.single:
        return _CTRL_PUNCTUATION.get(combo.key)
    return None


def _ctrl_named_key(combo: KeyCombo) -> str | None:
    # Named keys other than space have no standard Ctrl encoding.
    if combo.ctrl_only and not combo.single:
        return combo.fallback
    return None


def _alt(combo: KeyCombo) -> str | None:
    if combo.alt and not combo.ctrl:
        return ESC + combo.base
    return None


def _shift(combo: KeyCombo) -> str | None:
    if combo.shift and not combo.ctrl and not combo.alt and combo.single:
        return combo.key.upper()
    return None


def _ctrl_shift_letter(combo: KeyCombo) -> str | None:
    if combo.ctrl and combo.shift and not combo.alt and combo.single and combo.key.isascii():
        upper = combo.key.upper()
        if len(upper) == 1 and "A" <= upper <= "Z":
            return chr(ord(upper) - ord("A") + 1)
    return None


def _ctrl_alt(combo: KeyCombo) -> str | None:
    if not (combo.ctrl and combo.alt):
        return None
    if combo.single:
        code = _control_code(combo.key)
        return ESC + code if code is not None else None
    return ESC + combo.base


ModifierRule = Callable[[KeyCombo], str | None]

# Evaluated in order, the first rule returning a string wins.
MODIFIER_RULES: tuple[ModifierRule, ...] = (
    _ctrl_letter,
    _ctrl_space,
    _ctrl_punctuation,
    _ctrl_named_key,
    _alt,
    _shift,
    _ctrl_shift_letter,
    _ctrl_alt,
)


def parse_combo(spec: str) -> KeyCombo | None:
    """Split ``spec`` into modifiers and a base key.

    Returns ``None`` when the base key is neither a named key nor a single
    character. Unknown modifier names are ignored.
    """

    *modifiers, key = spec.split("-")
    if key in NAMED_KEYS:
        base = NAMED_KEYS[key]
    elif len(key) == 1:
        base = key
    else:
        return None

    flags = {"ctrl": False, "alt": False, "shift": False}
    for modifier in modifiers:
        name = _MODIFIER_ALIASES.get(modifier.lower())
        if name is not None:
            flags[name] = True
    return KeyCombo(spec=spec, key=key, base=base, **flags)


def apply_modifiers(combo: KeyCombo) -> str:
    for rule in MODIFIER_RULES:
        result = rule(combo)
        if result is not None:
            return result
    return combo.fallback


def resolve_key(spec: str) -> str:
    """Return the sequence for the text between ``<`` and ``>``.

    Unrecognised specifications come back verbatim with their brackets so a
    typo shows up in the typed output instead of being swallowed.
    """

    if spec in NAMED_KEYS:
        return NAMED_KEYS[spec]
    if "-" in spec:
        combo = parse_combo(spec)
        if combo is not None:
            return apply_modifiers(combo)
    return f"<{spec}>"
