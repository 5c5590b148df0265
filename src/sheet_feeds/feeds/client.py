"""Google Spreadsheets feed client.

Reads and writes a spreadsheet through the legacy worksheets, list and
cells feeds.

Usage:
    async with GoogleSpreadsheet("spreadsheet-key") as sheet:
        await sheet.use_service_account_auth("service_account_key.json")
        info = await sheet.get_info()
        rows = await info.worksheets[0].get_rows(num=10)
        rows[0]["status"] = "done"
        await rows[0].save()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import httpx

from sheet_feeds.auth.credentials import AccessToken, AuthMode, AuthState
from sheet_feeds.auth.exceptions import AuthTransitionError
from sheet_feeds.auth.service_account import ServiceAccount
from sheet_feeds.config import ATOM_CONTENT_TYPE, ATOM_NAMESPACE, GSX_NAMESPACE, get_settings
from sheet_feeds.feeds.exceptions import (
    AuthorizationError,
    EmptyResponseError,
    MissingKeyError,
    PrivateResourceError,
    RequestError,
)
from sheet_feeds.feeds.models import Cell, Row, SpreadsheetInfo, Worksheet
from sheet_feeds.feeds.normalize import text_of
from sheet_feeds.feeds.parser import parse_feed, split_entries
from sheet_feeds.feeds.urls import PROJECTIONS, VISIBILITIES, build_query, feed_url
from sheet_feeds.feeds.xml_safe import escape_value, force_array, sanitize_column_name

logger = logging.getLogger(__name__)

# Keys that describe the entry rather than a column
RESERVED_KEYS = frozenset({"id", "title", "content", "_links"})

Target = str | Sequence[str]


class GoogleSpreadsheet:
    """Client for one spreadsheet.

    Unauthenticated clients read the public/values feeds; once a token or
    service account is set, the private/full feeds are used unless
    visibility or projection were given explicitly.

    Example:
        >>> sheet = GoogleSpreadsheet("1AbC...", visibility="public")
        >>> info = await sheet.get_info()
        >>> [ws.title for ws in info.worksheets]
    """

    def __init__(
        self,
        key: str | None = None,
        auth: AccessToken | Mapping[str, Any] | str | None = None,
        *,
        visibility: str | None = None,
        projection: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client.

        Args:
            key: Spreadsheet key. If None, reads GOOGLE_SPREADSHEET_KEY.
            auth: Optional access token to start with.
            visibility: "public" or "private". Defaults from auth.
            projection: "values" or "full". Defaults from auth.
            http_client: Client to send requests with. The caller keeps
                ownership of a client passed here.
            base_url: Feed base URL. If None, reads SHEET_FEEDS_BASE_URL.
            timeout: Request timeout in seconds for the default client.

        Raises:
            MissingKeyError: If no spreadsheet key is available.
            ValueError: If visibility or projection is not recognised.
        """
        settings = get_settings()
        self.key = key or settings.spreadsheet_key
        if not self.key:
            raise MissingKeyError()

        if visibility is not None and visibility not in VISIBILITIES:
            raise ValueError(f"Unknown visibility: {visibility}. Use one of: {VISIBILITIES}")
        if projection is not None and projection not in PROJECTIONS:
            raise ValueError(f"Unknown projection: {projection}. Use one of: {PROJECTIONS}")

        self._visibility = visibility
        self._projection = projection
        self.base_url = base_url or settings.base_url

        self._auth = AuthState()
        if auth is not None:
            self._auth = self._auth.transition(AuthMode.TOKEN, AccessToken.coerce(auth))
        self._service_account: ServiceAccount | None = None
        self._refresh_lock = asyncio.Lock()

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout or settings.timeout)

    @property
    def auth(self) -> AuthState:
        return self._auth

    @property
    def visibility(self) -> str:
        if self._visibility:
            return self._visibility
        return "private" if self._auth.is_authenticated else "public"

    @property
    def projection(self) -> str:
        if self._projection:
            return self._projection
        return "full" if self._auth.is_authenticated else "values"

    # =========================================================================
    # Authentication
    # =========================================================================

    def set_auth_token(self, token: AccessToken | Mapping[str, Any] | str) -> None:
        """Use an externally obtained access token.

        Args:
            token: AccessToken, mapping with type, value and expires
                (epoch milliseconds), or a raw GoogleLogin auth string.

        Raises:
            AuthTransitionError: If a service account is already in use.
            TokenError: If the token is empty or not a supported type.
        """
        self._auth = self._auth.transition(AuthMode.TOKEN, AccessToken.coerce(token))

    async def use_service_account_auth(
        self, creds: ServiceAccount | Mapping[str, Any] | str | Path | None = None
    ) -> None:
        """Authenticate as a service account and fetch a first token.

        Args:
            creds: Mapping with client_email and private_key, a path to a
                JSON key file, or a ServiceAccount. If None, the key file
                from GOOGLE_SERVICE_ACCOUNT_KEY is used.

        Raises:
            AuthTransitionError: If a token was already injected.
            CredentialsNotFoundError: If the key file does not exist.
            TokenError: If the token request fails.
        """
        if not self._auth.allows(AuthMode.SERVICE_ACCOUNT):
            raise AuthTransitionError(self._auth.mode, AuthMode.SERVICE_ACCOUNT)

        if isinstance(creds, ServiceAccount):
            account = creds
        elif creds is None:
            account = ServiceAccount.from_key_file(get_settings().service_account_key)
        elif isinstance(creds, (str, Path)):
            account = ServiceAccount.from_key_file(creds)
        else:
            account = ServiceAccount(creds)

        async with self._refresh_lock:
            token = await account.fetch_token()
            self._auth = self._auth.transition(AuthMode.SERVICE_ACCOUNT, token)
            self._service_account = account

    async def _ensure_fresh_token(self) -> None:
        if not self._auth.needs_refresh:
            return
        async with self._refresh_lock:
            # Another request may have refreshed while we waited
            if not self._auth.needs_refresh:
                return
            logger.info("Service account token expired, refreshing")
            token = await self._service_account.fetch_token()
            self._auth = self._auth.transition(AuthMode.SERVICE_ACCOUNT, token)

    # =========================================================================
    # Requests
    # =========================================================================

    def _get_headers(self, method: str) -> dict[str, str]:
        headers = {}
        if self._auth.token is not None:
            headers["Authorization"] = self._auth.token.authorization_header
        if method in ("POST", "PUT"):
            headers["Content-Type"] = ATOM_CONTENT_TYPE
        return headers

    async def request(
        self,
        target: Target,
        method: str = "GET",
        payload: Mapping[str, Any] | str | None = None,
    ) -> tuple[Any, str | None]:
        """Send a feed request.

        Args:
            target: Feed path segments, to which visibility and projection
                are appended, or an absolute URL such as an edit link.
            method: HTTP method.
            payload: Query options for GET, XML document for POST and PUT.

        Returns:
            The parsed document and its raw text, or (None, None) for an
            empty response.

        Raises:
            AuthorizationError: On HTTP 401.
            RequestError: On any other HTTP error or transport failure.
            PrivateResourceError: When the feed answers with an HTML page.
        """
        method = method.upper()
        if isinstance(target, str):
            url = target
        else:
            url = feed_url(target, self.visibility, self.projection, self.base_url)

        await self._ensure_fresh_token()
        headers = self._get_headers(method)

        content = None
        if method in ("POST", "PUT"):
            content = payload
        elif method == "GET" and isinstance(payload, Mapping):
            query = build_query(payload)
            if query:
                url += ("&" if "?" in url else "?") + query

        logger.debug(f"{method} {url}")
        try:
            response = await self._client.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as e:
            raise RequestError(f"Request failed: {e}") from e

        status = response.status_code
        body = response.text
        if status == 401:
            raise AuthorizationError(f"Invalid authorization key. {body}", status, body)
        elif status >= 400:
            raise RequestError(
                f"HTTP error {status}: {response.reason_phrase}. {body}", status, body
            )
        elif status == 200 and "text/html" in response.headers.get("content-type", ""):
            raise PrivateResourceError(
                "Sheet is private. Use authentication or make it public.\n" + body,
                status,
                body,
            )

        if not body.strip():
            return None, None
        return parse_feed(body), body

    # =========================================================================
    # Spreadsheet operations
    # =========================================================================

    async def get_info(self) -> SpreadsheetInfo:
        """Get the spreadsheet title and its worksheets."""
        data, _ = await self.request(["worksheets", self.key])
        if data is None:
            raise EmptyResponseError("get_info")

        return SpreadsheetInfo(
            title=text_of(data.get("title", "")),
            updated=data.get("updated"),
            author=data.get("author"),
            worksheets=[Worksheet.from_entry(self, e) for e in force_array(data.get("entry"))],
        )

    async def get_rows(
        self,
        worksheet_id: str | int,
        start: int | None = None,
        num: int | None = None,
        orderby: str | None = None,
        reverse: bool = False,
        query: str | None = None,
    ) -> list[Row]:
        """Get rows from a worksheet. The header row is not included.

        Args:
            worksheet_id: Worksheet id.
            start: 1-based index of the first row to return.
            num: Maximum number of rows.
            orderby: Sort column, e.g. "column:lastname".
            reverse: Reverse the sort order.
            query: Structured query, e.g. "age > 25 and name = Bob".

        Returns:
            Rows in feed order.
        """
        options = {
            "start-index": start,
            "max-results": num,
            "orderby": orderby,
            "reverse": True if reverse else None,
            "sq": query,
        }
        data, xml = await self.request(["list", self.key, str(worksheet_id)], "GET", options)
        if data is None:
            raise EmptyResponseError("get_rows")

        fragments = split_entries(xml)
        rows = []
        for i, entry in enumerate(force_array(data.get("entry"))):
            fragment = fragments[i] if i < len(fragments) else None
            rows.append(Row.from_entry(self, entry, fragment))
        return rows

    async def add_row(self, worksheet_id: str | int, data: Mapping[str, Any]) -> Row | None:
        """Append a row to a worksheet.

        Keys are matched to header cells after lowercasing and removing
        spaces and underscores. The keys id, title, content and _links are
        ignored.

        Returns:
            The created row, or None if the feed returned no entry.
        """
        lines = [f'<entry xmlns="{ATOM_NAMESPACE}" xmlns:gsx="{GSX_NAMESPACE}">']
        for key, value in data.items():
            if key in RESERVED_KEYS:
                continue
            column = sanitize_column_name(key)
            lines.append(f"<gsx:{column}>{escape_value(value)}</gsx:{column}>")
        lines.append("</entry>")

        entry, xml = await self.request(
            ["list", self.key, str(worksheet_id)], "POST", "\n".join(lines)
        )
        if entry is None:
            return None
        fragments = split_entries(xml)
        return Row.from_entry(self, entry, fragments[0] if fragments else None)

    async def get_cells(
        self,
        worksheet_id: str | int,
        min_row: int | None = None,
        max_row: int | None = None,
        min_col: int | None = None,
        max_col: int | None = None,
        return_empty: bool | None = None,
    ) -> list[Cell]:
        """Get cells from a worksheet.

        Args:
            worksheet_id: Worksheet id.
            min_row: First row (1-based).
            max_row: Last row.
            min_col: First column (1-based).
            max_col: Last column.
            return_empty: Include empty cells.

        Returns:
            Cells in feed order.
        """
        options = {
            "min-row": min_row,
            "max-row": max_row,
            "min-col": min_col,
            "max-col": max_col,
            "return-empty": return_empty,
        }
        worksheet_id = str(worksheet_id)
        data, _ = await self.request(["cells", self.key, worksheet_id], "GET", options)
        if data is None:
            raise EmptyResponseError("get_cells")

        return [Cell.from_entry(self, worksheet_id, e) for e in force_array(data.get("entry"))]

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
