"""Feed URL and query string construction."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlencode, urlsplit

from sheet_feeds.config import FEED_BASE_URL

VISIBILITIES = ("public", "private")
PROJECTIONS = ("values", "full")


def feed_url(
    segments: Sequence[Any],
    visibility: str,
    projection: str,
    base: str = FEED_BASE_URL,
) -> str:
    """Build a feed URL such as ``{base}list/{key}/{worksheet}/private/full``.

    The segments are not modified.
    """
    parts = [str(s) for s in segments if s is not None and s != ""]
    return base + "/".join([*parts, visibility, projection])


def build_query(params: Mapping[str, Any] | None) -> str:
    """Serialize query options, skipping ``None`` and lowering booleans."""
    if not params:
        return ""
    items = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        items.append((key, value))
    return urlencode(items)


def worksheet_id_from_url(url: str) -> str:
    """Return the last path segment of an entry id URL."""
    path = urlsplit(url).path or url
    return path.rstrip("/").rsplit("/", 1)[-1]
