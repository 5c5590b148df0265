"""Flattening of parsed feed entries into records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sheet_feeds.feeds.xml_safe import force_array

COLUMN_PREFIX = "gsx:"
LINKS_KEY = "_links"


def text_of(value: Any) -> Any:
    """Return the text of a parsed element, or the value itself if it has none."""
    if isinstance(value, Mapping):
        return value.get("_", "")
    return value


def extract_links(value: Any) -> dict[str, str]:
    """Map each ``link`` element's rel to its href."""
    links = {}
    for link in force_array(value):
        attrs = link.get("$", {}) if isinstance(link, Mapping) else {}
        if "rel" in attrs and "href" in attrs:
            links[attrs["rel"]] = attrs["href"]
    return links


def _column_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        if not value:
            return None
        if "_" in value:
            return value["_"]
    return value


def normalize_entry(entry: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten one parsed entry.

    Extended-schema (``gsx:``) elements become columns keyed by the name the
    feed gives them, with empty elements as ``None``. Links are collected
    into ``_links``, replacing any earlier value. Other elements keep their
    text where they have one and their parsed structure otherwise.
    """
    record: dict[str, Any] = {LINKS_KEY: extract_links(entry.get("link"))}
    for key, value in entry.items():
        if key.startswith(COLUMN_PREFIX):
            column = key[len(COLUMN_PREFIX):]
            if column:
                record[column] = _column_value(value)
        elif key in ("link", "$", LINKS_KEY):
            continue
        elif isinstance(value, Mapping) and value.get("_"):
            record[key] = value["_"]
        else:
            record[key] = value
    return record


def column_names(entry: Mapping[str, Any]) -> list[str]:
    """Names of the extended-schema columns in a parsed entry, in order."""
    return [
        key[len(COLUMN_PREFIX):]
        for key in entry
        if key.startswith(COLUMN_PREFIX) and len(key) > len(COLUMN_PREFIX)
    ]
