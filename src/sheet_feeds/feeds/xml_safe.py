"""Helpers for writing values and column names into feed XML."""

from __future__ import annotations

import re
from typing import Any

_XML_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;"})
_COLUMN_STRIP = re.compile(r"[\s_]+")


def escape_value(value: Any) -> str:
    """Escape a value for element content or a double-quoted attribute.

    Only ``&``, ``<``, ``>`` and ``"`` are escaped. ``None`` becomes an
    empty string; anything else is converted with ``str``.
    """
    if value is None:
        return ""
    return str(value).translate(_XML_ESCAPES)


def sanitize_column_name(name: Any) -> str:
    """Convert a column header to the key the list feed uses.

    Lowercases and removes whitespace and underscores, so "First Name"
    and "first_name" both become "firstname".
    """
    if not name:
        return ""
    return _COLUMN_STRIP.sub("", str(name)).lower()


def force_array(value: Any) -> list[Any]:
    """Treat a missing, single or repeated value as a list."""
    if isinstance(value, list):
        return value
    if value is None or value == "":
        return []
    return [value]
