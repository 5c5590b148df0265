"""Async client for the Google Spreadsheets feed protocol."""

from sheet_feeds.auth import AccessToken, AuthMode, ServiceAccount
from sheet_feeds.feeds import (
    AuthorizationError,
    Cell,
    EmptyResponseError,
    GoogleSpreadsheet,
    MissingKeyError,
    PrivateResourceError,
    RequestError,
    Row,
    SpreadsheetError,
    SpreadsheetInfo,
    Worksheet,
)

__version__ = "0.1.0"

__all__ = [
    "GoogleSpreadsheet",
    "SpreadsheetInfo",
    "Worksheet",
    "Row",
    "Cell",
    "AccessToken",
    "AuthMode",
    "ServiceAccount",
    "SpreadsheetError",
    "MissingKeyError",
    "RequestError",
    "AuthorizationError",
    "PrivateResourceError",
    "EmptyResponseError",
]
