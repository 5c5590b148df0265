"""Authentication for spreadsheet feed requests."""

from sheet_feeds.auth.credentials import AccessToken, AuthMode, AuthState
from sheet_feeds.auth.exceptions import (
    AuthTransitionError,
    CredentialsNotFoundError,
    GoogleAuthError,
    TokenError,
)
from sheet_feeds.auth.service_account import ServiceAccount

__all__ = [
    "AccessToken",
    "AuthMode",
    "AuthState",
    "ServiceAccount",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "TokenError",
    "AuthTransitionError",
]
