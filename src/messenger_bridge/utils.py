"""Common utility functions and helpers."""

from __future__ import annotations

from typing import Any

_TRUE_VALUES = frozenset({"1", "true", "on", "yes"})
_FALSE_VALUES = frozenset({"0", "false", "off", "no", ""})


def to_bool(value: Any) -> bool:
    """Interpret a DSN/option value as a boolean.

    Accepts booleans, numbers, ``None`` (false) and the strings
    ``1/true/on/yes`` and ``0/false/off/no/""`` in any case.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {value!r}")
