"""Conversion of feed XML into nested dictionaries.

The root element name is dropped and every child is keyed by its prefixed
name (``title``, ``gsx:name``, ``gs:rowCount``). Attributes are collected
under ``"$"`` and text under ``"_"`` when the element also has attributes
or children. A text-only element becomes its string and an empty element
becomes ``{}``. Repeated children become lists, single children do not,
so readers should go through ``force_array``.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any

from sheet_feeds.config import ATOM_NAMESPACE, GS_NAMESPACE, GSX_NAMESPACE
from sheet_feeds.feeds.exceptions import FeedParseError

PREFIXES = {
    ATOM_NAMESPACE: "",
    GSX_NAMESPACE: "gsx",
    GS_NAMESPACE: "gs",
    "http://schemas.google.com/g/2005": "gd",
    "http://schemas.google.com/gdata/batch": "batch",
    "http://a9.com/-/spec/opensearchrss/1.0/": "openSearch",
    "http://a9.com/-/spec/opensearch/1.1/": "openSearch",
    "http://www.w3.org/XML/1998/namespace": "xml",
}

_ENTRY_PATTERN = re.compile(r"<entry[\s>][\s\S]*?</entry>")


def qualified_name(tag: str) -> str:
    """Turn ElementTree's ``{uri}local`` into ``prefix:local``."""
    if not tag.startswith("{"):
        return tag
    uri, _, local = tag[1:].partition("}")
    prefix = PREFIXES.get(uri)
    if prefix is None:
        return tag
    return f"{prefix}:{local}" if prefix else local


def _convert(element: ET.Element) -> Any:
    attrs = {qualified_name(k): v for k, v in element.attrib.items()}
    children: dict[str, Any] = {}
    repeated: set[str] = set()

    for child in element:
        key = qualified_name(child.tag)
        value = _convert(child)
        if key not in children:
            children[key] = value
        elif key in repeated:
            children[key].append(value)
        else:
            children[key] = [children[key], value]
            repeated.add(key)

    if not attrs and not children:
        return element.text if element.text else {}

    result: dict[str, Any] = {}
    if attrs:
        result["$"] = attrs
    if element.text and (not children or element.text.strip()):
        result["_"] = element.text
    result.update(children)
    return result


def parse_feed(xml_text: str | bytes) -> Any:
    """Parse a feed or entry document.

    Raises:
        FeedParseError: If the document is not well-formed.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise FeedParseError(f"Invalid feed XML: {e}") from e
    return _convert(root)


def split_entries(xml_text: str) -> list[str]:
    """Return the raw text of each ``<entry>`` element, in document order."""
    return _ENTRY_PATTERN.findall(xml_text)
