"""Google Service Account token issuer.

Service accounts authenticate server-to-server without user interaction.
The spreadsheet must be shared with the service account email address.

Example:
    >>> account = ServiceAccount.from_key_file("service_account_key.json")
    >>> token = await account.fetch_token()
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from datetime import timezone
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError as _GoogleAuthLibraryError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from sheet_feeds.auth.credentials import AccessToken
from sheet_feeds.auth.exceptions import (
    CredentialsNotFoundError,
    GoogleAuthError,
    TokenError,
)
from sheet_feeds.config import FEEDS_SCOPES

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class ServiceAccount:
    """Issues feed access tokens for a service account.

    Wraps google-auth service account credentials. Each call to
    ``fetch_token`` performs a token request; callers decide when a
    refresh is needed.
    """

    def __init__(self, info: Mapping[str, Any], scopes: list[str] | None = None):
        """Initialize from key data.

        Args:
            info: Key data with at least ``client_email`` and ``private_key``.
            scopes: OAuth scopes. Defaults to the spreadsheet feeds scope.

        Raises:
            GoogleAuthError: If the key data is incomplete or invalid.
        """
        missing = [k for k in ("client_email", "private_key") if not info.get(k)]
        if missing:
            raise GoogleAuthError(f"Service account credentials missing: {', '.join(missing)}")

        key_data = dict(info)
        key_data.setdefault("token_uri", TOKEN_URI)

        self.client_email: str = key_data["client_email"]
        self.project_id: str = key_data.get("project_id", "")
        self.scopes = list(scopes or FEEDS_SCOPES)

        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                key_data,
                scopes=self.scopes,
            )
        except (ValueError, _GoogleAuthLibraryError) as e:
            raise GoogleAuthError(f"Invalid service account key: {e}") from e

        logger.info(f"Service account initialized: {self.client_email}")

    @classmethod
    def from_key_file(
        cls, key_path: str | Path, scopes: list[str] | None = None
    ) -> ServiceAccount:
        """Load a service account from a JSON key file.

        Raises:
            CredentialsNotFoundError: If the key file does not exist.
            GoogleAuthError: If the file is not a service account key.
        """
        key_path = Path(key_path)
        if not key_path.exists():
            raise CredentialsNotFoundError(str(key_path))

        try:
            with open(key_path) as f:
                key_data = json.load(f)
        except json.JSONDecodeError as e:
            raise GoogleAuthError(f"Invalid JSON in key file: {e}") from e

        if key_data.get("type", "service_account") != "service_account":
            raise GoogleAuthError(
                f"Invalid key file: expected type 'service_account', "
                f"got '{key_data.get('type')}'"
            )
        return cls(key_data, scopes=scopes)

    @property
    def email(self) -> str:
        """The address the spreadsheet must be shared with."""
        return self.client_email

    def _refresh(self) -> AccessToken:
        try:
            self._credentials.refresh(Request())
        except _GoogleAuthLibraryError as e:
            raise TokenError(f"Failed to fetch service account token: {e}") from e

        expiry = self._credentials.expiry
        if expiry is not None and expiry.tzinfo is None:
            # google-auth reports naive UTC
            expiry = expiry.replace(tzinfo=timezone.utc)
        return AccessToken(type="Bearer", value=self._credentials.token, expires_at=expiry)

    async def fetch_token(self) -> AccessToken:
        """Request a fresh access token.

        Raises:
            TokenError: If the token endpoint rejects the request.
        """
        token = await asyncio.to_thread(self._refresh)
        logger.info(f"Fetched access token for {self.client_email}, expires {token.expires_at}")
        return token
