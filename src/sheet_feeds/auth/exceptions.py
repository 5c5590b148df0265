"""Authentication exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sheet_feeds.auth.credentials import AuthMode


class GoogleAuthError(Exception):
    """Base exception for authentication errors."""

    pass


class CredentialsNotFoundError(GoogleAuthError):
    """Raised when a service account key file is not found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Service account key not found at {path}. "
            "Please download a key from Google Cloud Console."
        )


class TokenError(GoogleAuthError):
    """Raised when an access token is malformed or cannot be fetched."""

    pass


class AuthTransitionError(GoogleAuthError):
    """Raised when a credential change would downgrade or switch auth mode."""

    def __init__(self, current: AuthMode, requested: AuthMode):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot switch authentication from {current.value} to {requested.value}"
        )
