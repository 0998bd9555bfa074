from __future__ import annotations

from typing import Any

import jsonschema

SCRIPT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["commands"],
    "properties": {
        "source": {"type": "string"},
        "commands": {
            "type": "array",
            "items": {
                "oneOf": [
                    {
                        "type": "object",
                        "required": ["type", "seconds"],
                        "properties": {
                            "type": {"const": "speed"},
                            "seconds": {"type": "number"},
                        },
                        "additionalProperties": False,
                    },
                    {
                        "type": "object",
                        "required": ["type", "fraction"],
                        "properties": {
                            "type": {"const": "jitter"},
                            "fraction": {"type": "number"},
                        },
                        "additionalProperties": False,
                    },
                    {
                        "type": "object",
                        "required": ["type", "seconds"],
                        "properties": {
                            "type": {"const": "wait"},
                            "seconds": {"type": "number", "minimum": 0},
                        },
                        "additionalProperties": False,
                    },
                    {
                        "type": "object",
                        "required": ["type", "path"],
                        "properties": {
                            "type": {"const": "shell"},
                            "path": {"type": "string"},
                        },
                        "additionalProperties": False,
                    },
                    {
                        "type": "object",
                        "required": ["type", "cols", "rows"],
                        "properties": {
                            "type": {"const": "size"},
                            "cols": {"$ref": "#/definitions/uint16"},
                            "rows": {"$ref": "#/definitions/uint16"},
                        },
                        "additionalProperties": False,
                    },
                    {
                        "type": "object",
                        "required": ["type", "text"],
                        "properties": {
                            "type": {"const": "type"},
                            "text": {"type": "string"},
                        },
                        "additionalProperties": False,
                    },
                ]
            },
        },
    },
    "additionalProperties": False,
    "definitions": {
        "uint16": {"type": "integer", "minimum": 0, "maximum": 65535},
    },
}


def validate_script(payload: dict[str, Any]) -> None:
    jsonschema.validate(instance=payload, schema=SCRIPT_SCHEMA)
