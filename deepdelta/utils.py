"""Utility functions for the deepdelta engine."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from numbers import Number
from typing import Any, Iterator, Optional

from .models import UNDEFINED


_PATTERN_FLAGS = (
    (re.ASCII, "a"),
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


def real_type_of(subject: Any) -> str:
    """
    Classify a value for comparison purposes.

    Two values are only ever recursed into when both classify the same;
    any other pair with differing classifications is an edit.

    Returns:
        One of 'undefined', 'null', 'boolean', 'number', 'string', 'math',
        'array', 'date', 'regexp', 'object', or the lower-cased type name
        of any other leaf value.
    """
    if subject is UNDEFINED:
        return "undefined"
    if subject is None:
        return "null"
    if isinstance(subject, bool):
        return "boolean"
    if isinstance(subject, Number):
        return "number"
    if isinstance(subject, str):
        return "string"
    if subject is math:
        return "math"
    if isinstance(subject, list):
        return "array"
    if isinstance(subject, date):
        return "date"
    if isinstance(subject, re.Pattern):
        return "regexp"
    if isinstance(subject, Mapping):
        return "object"
    return type(subject).__name__.lower()


def is_container(subject: Any) -> bool:
    """Check if a value is recursed into (a list or a mapping)."""
    return isinstance(subject, (list, Mapping))


def is_nan(value: Any) -> bool:
    """Check if a value is the float not-a-number."""
    return isinstance(value, float) and math.isnan(value)


def pattern_source(pattern: re.Pattern) -> str:
    """Render a compiled pattern in its '/source/flags' form."""
    source = pattern.pattern
    if isinstance(source, bytes):
        source = source.decode("utf-8", "backslashreplace")
    flags = "".join(letter for flag, letter in _PATTERN_FLAGS if pattern.flags & flag)
    return f"/{source}/{flags}"


def format_float(value: float) -> str:
    """
    Shortest textual form of a float in JavaScript number notation:
    'NaN', 'Infinity', '2', '0.5', '1e-7', '1e+21'.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    sign = "-" if value < 0 else ""
    _, raw, exponent = Decimal(repr(abs(value))).as_tuple()
    raw = "".join(str(d) for d in raw)
    digits = raw.rstrip("0")
    # decimal point sits after this many digits
    point = exponent + len(raw)

    if 0 < point <= 21:
        text = digits[:point] + "." + digits[point:]
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        power = point - 1
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        text = f"{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"
    return sign + text


def format_value(value: Any) -> str:
    """Textual form of a leaf value, as fed to the structural hash."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, re.Pattern):
        return pattern_source(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _code_units(text: str) -> Iterator[int]:
    """Yield the UTF-16 code units of a string."""
    for char in text:
        point = ord(char)
        if point > 0xFFFF:
            point -= 0x10000
            yield 0xD800 + (point >> 10)
            yield 0xDC00 + (point & 0x3FF)
        else:
            yield point


def hash_string(text: str) -> int:
    """
    Polynomial string hash (h * 31 + unit) wrapped to a signed 32-bit int.

    The empty string hashes to 0.
    """
    value = 0
    for unit in _code_units(text):
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return value


def order_independent_hash(subject: Any) -> int:
    """
    Hash a value so that element and key order do not matter.

    Sequences and mappings sum the hashes of their members, so permutations
    hash the same. Not collision resistant: only used as a sort key.
    """
    accum = 0
    kind = real_type_of(subject)

    if kind == "array":
        for item in subject:
            accum += order_independent_hash(item)
        return accum + hash_string(f"[type: array, hash: {accum}]")

    if kind == "object":
        for key, value in subject.items():
            accum += hash_string(
                f"[ type: object, key: {key}, value hash: {order_independent_hash(value)} ]"
            )
        return accum

    return hash_string(f"[ type: {kind} ; value: {format_value(subject)} ]")


def has_member(container: Any, key: Any) -> bool:
    """Check if a container declares ``key`` as its own member."""
    if isinstance(container, list):
        return isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(container)
    if isinstance(container, Mapping):
        try:
            return key in container
        except TypeError:
            return False
    return False


def get_member(container: Any, key: Any) -> Any:
    """Return ``container[key]``, or UNDEFINED when there is no such member."""
    if has_member(container, key):
        return container[key]
    return UNDEFINED


def is_index(key: Any) -> bool:
    """Check if a path segment addresses a sequence position."""
    return isinstance(key, int) and not isinstance(key, bool)


def build_path(parent_path: str, key: Any) -> str:
    """Build a JSONPath from parent path and key."""
    if is_index(key):
        return f"{parent_path}[{key}]"
    else:
        # Handle special characters in key names
        if re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', str(key)):
            return f"{parent_path}.{key}"
        else:
            return f"{parent_path}['{key}']"


def render_path(path: Optional[tuple]) -> str:
    """Render a change path as a JSONPath string ('$' for the root)."""
    result = "$"
    for key in path or ():
        result = build_path(result, key)
    return result
