"""Spreadsheet access through the worksheets, list and cells feeds.

Usage:
    from sheet_feeds.feeds import GoogleSpreadsheet

    async with GoogleSpreadsheet("spreadsheet-key") as sheet:
        await sheet.use_service_account_auth("service_account_key.json")
        info = await sheet.get_info()
        rows = await sheet.get_rows(info.worksheets[0].id, query="age > 25")
"""

from sheet_feeds.feeds.client import GoogleSpreadsheet
from sheet_feeds.feeds.exceptions import (
    AuthorizationError,
    EmptyResponseError,
    FeedParseError,
    MissingKeyError,
    NotEditableError,
    PrivateResourceError,
    RequestError,
    SpreadsheetError,
)
from sheet_feeds.feeds.models import Cell, Row, SpreadsheetInfo, Worksheet

__all__ = [
    "GoogleSpreadsheet",
    "SpreadsheetInfo",
    "Worksheet",
    "Row",
    "Cell",
    "SpreadsheetError",
    "MissingKeyError",
    "RequestError",
    "AuthorizationError",
    "PrivateResourceError",
    "FeedParseError",
    "EmptyResponseError",
    "NotEditableError",
]
