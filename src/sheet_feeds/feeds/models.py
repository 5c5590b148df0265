"""Worksheet, row and cell views over feed entries."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sheet_feeds.config import ATOM_CONTENT_TYPE, ATOM_NAMESPACE, GS_NAMESPACE, GSX_NAMESPACE
from sheet_feeds.feeds.exceptions import NotEditableError
from sheet_feeds.feeds.normalize import (
    LINKS_KEY,
    column_names,
    extract_links,
    normalize_entry,
    text_of,
)
from sheet_feeds.feeds.parser import PREFIXES, split_entries
from sheet_feeds.feeds.urls import feed_url, worksheet_id_from_url
from sheet_feeds.feeds.xml_safe import escape_value, sanitize_column_name

if TYPE_CHECKING:
    from sheet_feeds.feeds.client import GoogleSpreadsheet

_ENTRY_OPEN_TAG = re.compile(r"<entry(\s[^>]*)?>")
_NAMESPACE_URIS = {prefix: uri for uri, prefix in PREFIXES.items() if prefix not in ("", "xml")}
_NAMESPACE_URIS["gsx"] = GSX_NAMESPACE


def _to_int(value: Any) -> int | None:
    try:
        return int(text_of(value))
    except (TypeError, ValueError):
        return None


def _edit_link(links: Mapping[str, str], kind: str) -> str:
    try:
        return links["edit"]
    except KeyError:
        raise NotEditableError(
            f"{kind} has no edit link. Fetch it with the 'full' projection "
            "using an authenticated client."
        ) from None


def declare_entry_namespaces(fragment: str) -> str:
    """Add missing namespace declarations to a fragment's opening ``<entry>`` tag.

    The Atom default namespace and ``gsx`` are always declared; other known
    prefixes only when the fragment uses them. Nothing else in the fragment
    changes.
    """
    match = _ENTRY_OPEN_TAG.search(fragment)
    if not match:
        return fragment
    attrs = match.group(1) or ""

    additions = []
    if not re.search(r"\sxmlns\s*=", attrs):
        additions.append(f"xmlns='{ATOM_NAMESPACE}'")
    for prefix, uri in _NAMESPACE_URIS.items():
        if re.search(rf"\sxmlns:{prefix}\s*=", attrs):
            continue
        if prefix == "gsx" or f"{prefix}:" in fragment:
            additions.append(f"xmlns:{prefix}='{uri}'")

    if not additions:
        return fragment
    tag = f"<entry{attrs} {' '.join(additions)}>"
    return fragment[: match.start()] + tag + fragment[match.end():]


def replace_column(fragment: str, column: str, value: str) -> str:
    """Replace the inner text of the first ``<gsx:column>`` element.

    ``value`` must already be escaped. A self-closing element is expanded.
    """
    name = re.escape(column)
    pattern = re.compile(rf"<gsx:{name}>[\s\S]*?</gsx:{name}>|<gsx:{name}\s*/>")
    element = f"<gsx:{column}>{value}</gsx:{column}>"
    return pattern.sub(lambda _: element, fragment, count=1)


@dataclass
class SpreadsheetInfo:
    """Spreadsheet metadata and its worksheets."""

    title: str
    updated: str | None = None
    author: Any = None
    worksheets: list[Worksheet] = field(default_factory=list)


@dataclass(frozen=True)
class Worksheet:
    """A worksheet within a spreadsheet.

    Worksheet ids start at 1 for the first sheet in older spreadsheets and
    are opaque strings ("od6") in newer ones.
    """

    id: str
    title: str
    row_count: int | None = None
    col_count: int | None = None
    spreadsheet: GoogleSpreadsheet | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_entry(cls, spreadsheet: GoogleSpreadsheet, entry: Mapping[str, Any]) -> Worksheet:
        return cls(
            id=worksheet_id_from_url(text_of(entry.get("id", ""))),
            title=text_of(entry.get("title", "")),
            row_count=_to_int(entry.get("gs:rowCount")),
            col_count=_to_int(entry.get("gs:colCount")),
            spreadsheet=spreadsheet,
        )

    async def get_rows(
        self,
        start: int | None = None,
        num: int | None = None,
        orderby: str | None = None,
        reverse: bool = False,
        query: str | None = None,
    ) -> list[Row]:
        return await self.spreadsheet.get_rows(
            self.id, start=start, num=num, orderby=orderby, reverse=reverse, query=query
        )

    async def get_cells(self, **options: Any) -> list[Cell]:
        return await self.spreadsheet.get_cells(self.id, **options)

    async def add_row(self, data: Mapping[str, Any]) -> Row | None:
        return await self.spreadsheet.add_row(self.id, data)


class Row(MutableMapping):
    """A list feed row.

    Behaves as a mapping of column key to value. Keys are the ones the feed
    uses: lowercased header text without spaces or underscores. Values are
    strings, or None for empty cells.

    Saving patches the XML the row was fetched with instead of generating a
    new document, since the edit endpoint rejects documents that differ in
    shape from what it served. Only changed columns are rewritten.
    """

    def __init__(
        self,
        spreadsheet: GoogleSpreadsheet,
        values: Mapping[str, Any] | None = None,
        *,
        id: str | None = None,
        title: str | None = None,
        content: str | None = None,
        links: Mapping[str, str] | None = None,
        xml: str | None = None,
    ):
        self.spreadsheet = spreadsheet
        self.id = id
        self.title = title
        self.content = content
        self.links: dict[str, str] = dict(links or {})
        self.xml = xml
        self._values: dict[str, Any] = dict(values or {})
        self._saved: dict[str, Any] = dict(self._values)

    @classmethod
    def from_entry(
        cls,
        spreadsheet: GoogleSpreadsheet,
        entry: Mapping[str, Any],
        xml: str | None = None,
    ) -> Row:
        """Build a row from a parsed entry and its raw ``<entry>`` text."""
        record = normalize_entry(entry)
        return cls(
            spreadsheet,
            {name: record[name] for name in column_names(entry)},
            id=text_of(entry.get("id")),
            title=text_of(entry.get("title")),
            content=text_of(entry.get("content")),
            links=record.get(LINKS_KEY),
            xml=xml,
        )

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row(id={self.id!r}, values={self._values!r})"

    def to_xml(self) -> str:
        """Return the entry document ``save`` would send.

        Raises:
            NotEditableError: If the row was not fetched from a feed.
        """
        if not self.xml:
            raise NotEditableError("Row has no original XML to edit")

        data_xml = declare_entry_namespaces(self.xml)
        for key, value in self._values.items():
            if key in self._saved and self._saved[key] == value:
                continue
            data_xml = replace_column(data_xml, sanitize_column_name(key), escape_value(value))
        return data_xml

    async def save(self) -> None:
        """Write changed column values back to the sheet.

        Raises:
            NotEditableError: If the row has no XML or no edit link.
            RequestError: If the feed rejects the update.
        """
        data_xml = self.to_xml()
        edit = _edit_link(self.links, "Row")
        record, raw = await self.spreadsheet.request(edit, "PUT", data_xml)

        # The sent document now holds every saved value
        self.xml = data_xml
        self._saved = dict(self._values)
        if record is not None:
            # The edit link carries the entry version, so keep the new one
            self.links = extract_links(record.get("link")) or self.links
            fragments = split_entries(raw)
            if fragments:
                self.xml = fragments[0]

    async def delete(self) -> None:
        """Delete the row from the sheet.

        Raises:
            NotEditableError: If the row has no edit link.
        """
        await self.spreadsheet.request(_edit_link(self.links, "Row"), "DELETE")


class Cell:
    """A cells feed entry. Row and column numbers start at 1."""

    def __init__(
        self,
        spreadsheet: GoogleSpreadsheet,
        worksheet_id: str,
        row: int,
        col: int,
        value: str = "",
        *,
        id: str | None = None,
        numeric_value: float | None = None,
        links: Mapping[str, str] | None = None,
    ):
        self.spreadsheet = spreadsheet
        self.worksheet_id = worksheet_id
        self.id = id
        self.row = row
        self.col = col
        self.value = value
        self.numeric_value = numeric_value
        self.links: dict[str, str] = dict(links or {})

    @classmethod
    def from_entry(
        cls, spreadsheet: GoogleSpreadsheet, worksheet_id: str, entry: Mapping[str, Any]
    ) -> Cell:
        cell = entry.get("gs:cell", {})
        attrs = cell.get("$", {}) if isinstance(cell, Mapping) else {}
        numeric = attrs.get("numericValue")
        return cls(
            spreadsheet,
            worksheet_id,
            row=int(attrs["row"]),
            col=int(attrs["col"]),
            value=text_of(cell) or "",
            id=text_of(entry.get("id")),
            numeric_value=float(numeric) if numeric not in (None, "") else None,
            links=extract_links(entry.get("link")),
        )

    def __repr__(self) -> str:
        return f"Cell(row={self.row}, col={self.col}, value={self.value!r})"

    @property
    def edit_id(self) -> str:
        """Entry id of this cell on the private/full cells feed."""
        base = feed_url(
            ["cells", self.spreadsheet.key, self.worksheet_id],
            "private",
            "full",
            self.spreadsheet.base_url,
        )
        return f"{base}/R{self.row}C{self.col}"

    def to_xml(self) -> str:
        """Return the minimal edit entry for the current value."""
        edit_id = escape_value(self.edit_id)
        return (
            f"<entry xmlns='{ATOM_NAMESPACE}' xmlns:gs='{GS_NAMESPACE}'>"
            f"<id>{edit_id}</id>"
            f'<link rel="edit" type="{ATOM_CONTENT_TYPE}" href="{edit_id}"/>'
            f'<gs:cell row="{self.row}" col="{self.col}" inputValue="{escape_value(self.value)}"/>'
            "</entry>"
        )

    async def set_value(self, value: Any) -> None:
        """Set the value and save it immediately."""
        self.value = value
        await self.save()

    async def save(self) -> None:
        """Write the current value to the sheet.

        Raises:
            NotEditableError: If the cell has no edit link.
        """
        edit = _edit_link(self.links, "Cell")
        record, _ = await self.spreadsheet.request(edit, "PUT", self.to_xml())
        if record is not None:
            self.links = extract_links(record.get("link")) or self.links

    async def delete(self) -> None:
        """Empty the cell. The cells feed cannot remove a cell."""
        await self.set_value("")
