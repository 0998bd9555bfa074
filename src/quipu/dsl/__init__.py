from __future__ import annotations

from .keys import NAMED_KEYS, KeyCombo, apply_modifiers, parse_combo, resolve_key
from .model import dump_script, load_script
from .parser import expand_text, parse_line, parse_script
from .schema import SCRIPT_SCHEMA, validate_script

__all__ = [
    "KeyCombo",
    "NAMED_KEYS",
    "SCRIPT_SCHEMA",
    "apply_modifiers",
    "dump_script",
    "expand_text",
    "load_script",
    "parse_combo",
    "parse_line",
    "parse_script",
    "resolve_key",
    "validate_script",
]
