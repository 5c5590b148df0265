"""Spreadsheet feed exceptions."""

from __future__ import annotations


class SpreadsheetError(Exception):
    """Base exception for spreadsheet feed errors."""

    pass


class MissingKeyError(SpreadsheetError):
    """Raised when a client is created without a spreadsheet key."""

    def __init__(self):
        super().__init__(
            "Spreadsheet key not provided. "
            "Set GOOGLE_SPREADSHEET_KEY env var or pass key parameter."
        )


class RequestError(SpreadsheetError):
    """Raised when a feed request fails."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class AuthorizationError(RequestError):
    """Raised when the feed rejects the credential (HTTP 401)."""


class PrivateResourceError(RequestError):
    """Raised when a restricted sheet answers with an HTML login page."""


class FeedParseError(SpreadsheetError):
    """Raised when a feed response body is not well-formed XML."""


class EmptyResponseError(SpreadsheetError):
    """Raised when an operation that needs feed data received none."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No response to {operation} call")


class NotEditableError(SpreadsheetError):
    """Raised when an entry lacks what is needed to save or delete it."""
