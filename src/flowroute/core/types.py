"""
Core type definitions for flowroute.

This module contains the runtime value model shared by variable resolution,
template interpolation and clause evaluation. Every runtime value is one of
the Python natives None, bool, int/float, str, list or dict; no other runtime
type exists.
"""

import json
import math
import re
from enum import Enum
from typing import Any

from flowroute.exceptions import TypeMismatchError

Value = None | bool | int | float | str | list | dict

Outputs = dict[str, Any]

NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


class ValueKind(Enum):
    """Tag of a runtime value, named as in the type_equals operator."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def value_kind(value: Any) -> ValueKind:
    """
    Return the tag of a runtime value.

    Params:
        value: Value produced by a node or by interpolation

    Returns:
        The ValueKind of the value

    Raises:
        TypeMismatchError: If the value is not part of the value model
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeMismatchError("type_equals", "a workflow value", value)


def format_number(number: int | float) -> str:
    """Format a number canonically: integral values without a fraction."""
    if isinstance(number, float):
        if math.isfinite(number) and number.is_integer():
            return str(int(number))
        return repr(number)
    return str(number)


def to_json(value: Any) -> str:
    """Serialize a value to stable JSON (sorted keys, compact separators)."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def format_value(value: Any) -> str:
    """
    Stringify a runtime value for substitution into a template.

    Params:
        value: Any runtime value

    Returns:
        Text as is, numbers in canonical form, booleans as true/false,
        None as the empty string, arrays and objects as stable JSON
    """
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return format_number(value)
    if kind is ValueKind.STRING:
        return value
    return to_json(list(value) if isinstance(value, tuple) else value)


def parse_number(value: Any) -> int | float | None:
    """
    Parse a value as a number without raising.

    Numbers pass through, text is parsed when it is a plain decimal literal
    (surrounding whitespace allowed). Booleans, None and containers are never
    numbers.

    Params:
        value: Value to parse

    Returns:
        The parsed number, or None when the value is not numeric
    """
    kind = value_kind(value)
    if kind is ValueKind.NUMBER:
        return value
    if kind is not ValueKind.STRING:
        return None
    text = value.strip()
    if not NUMBER_PATTERN.match(text):
        return None
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)
