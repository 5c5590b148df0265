"""Access tokens and the client authentication state.

A client starts anonymous and can only move forward: an injected token or a
service account, never back to anonymous. ``AuthState`` is immutable and
``AuthState.transition`` is the only way to obtain a new one, so an illegal
change cannot be stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sheet_feeds.auth.exceptions import AuthTransitionError, TokenError


class AuthMode(Enum):
    """How a client authenticates its feed requests."""

    ANONYMOUS = "anonymous"
    TOKEN = "token"
    SERVICE_ACCOUNT = "service_account"


BEARER_TYPE = "Bearer"
LEGACY_TYPE = "GoogleLogin"

# Allowed moves; a mode mapping to itself is a token replacement
TRANSITIONS: dict[AuthMode, frozenset[AuthMode]] = {
    AuthMode.ANONYMOUS: frozenset({AuthMode.TOKEN, AuthMode.SERVICE_ACCOUNT}),
    AuthMode.TOKEN: frozenset({AuthMode.TOKEN}),
    AuthMode.SERVICE_ACCOUNT: frozenset({AuthMode.SERVICE_ACCOUNT}),
}


def _parse_expiry(value: Any) -> datetime | None:
    """Convert epoch milliseconds, ISO strings or datetimes to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise TokenError(f"Invalid token expiry: {value!r}") from e
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    raise TokenError(f"Invalid token expiry: {value!r}")


@dataclass(frozen=True)
class AccessToken:
    """An access token and its expiry.

    Attributes:
        type: Token type, "Bearer" for OAuth tokens. Anything else is sent
            with the legacy GoogleLogin header.
        value: The token string.
        expires_at: Aware expiry time, or None if the token does not expire.
    """

    type: str
    value: str
    expires_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AccessToken:
        """Build a token from ``{type, value, expires}``.

        ``expires`` may be epoch milliseconds, an ISO 8601 string or a
        datetime. ``expires_at`` is accepted as an alias. Only tokens typed
        "Bearer" are OAuth tokens; a missing type means a GoogleLogin token.
        """
        value = data.get("value")
        if not value:
            raise TokenError("Token is missing a value")
        expiry = data.get("expires", data.get("expires_at"))
        return cls(
            type=data.get("type") or LEGACY_TYPE,
            value=value,
            expires_at=_parse_expiry(expiry),
        )

    @classmethod
    def coerce(cls, token: AccessToken | Mapping[str, Any] | str) -> AccessToken:
        """Accept a token object, a ``from_dict`` mapping or a raw GoogleLogin auth string.

        Raises:
            TokenError: If the token is empty or of an unsupported type.
        """
        if isinstance(token, AccessToken):
            return token
        if isinstance(token, str):
            if not token:
                raise TokenError("Token is missing a value")
            return cls(type=LEGACY_TYPE, value=token)
        if isinstance(token, Mapping):
            return cls.from_dict(token)
        raise TokenError(f"Unsupported token type: {type(token).__name__}")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the token has expired."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now

    @property
    def authorization_header(self) -> str:
        """Value of the Authorization header for this token."""
        if self.type == BEARER_TYPE:
            return f"Bearer {self.value}"
        return f"GoogleLogin auth={self.value}"

    def __repr__(self) -> str:
        return f"AccessToken(type={self.type!r}, expires_at={self.expires_at!r})"


@dataclass(frozen=True)
class AuthState:
    """Current authentication mode and token of a client."""

    mode: AuthMode = AuthMode.ANONYMOUS
    token: AccessToken | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def needs_refresh(self) -> bool:
        """True when a service account token is missing or expired."""
        if self.mode is not AuthMode.SERVICE_ACCOUNT:
            return False
        return self.token is None or self.token.is_expired()

    def allows(self, mode: AuthMode) -> bool:
        return mode in TRANSITIONS[self.mode]

    def transition(self, mode: AuthMode, token: AccessToken | None) -> AuthState:
        """Return the state after moving to ``mode`` with ``token``.

        Raises:
            AuthTransitionError: If the move is not allowed from this mode.
        """
        if not self.allows(mode):
            raise AuthTransitionError(self.mode, mode)
        return AuthState(mode=mode, token=token)
