"""Centralized configuration for the spreadsheet feeds client.

Settings are read from the environment, with an optional ``.env`` file in
the repository root loaded on import:
    GOOGLE_SPREADSHEET_KEY       - default spreadsheet key
    GOOGLE_SERVICE_ACCOUNT_KEY   - path to a service account JSON key
    SHEET_FEEDS_BASE_URL         - feed base URL override
    SHEET_FEEDS_TIMEOUT          - HTTP timeout in seconds

Variables already present in the environment always take precedence over
values from the ``.env`` file.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# __file__ is src/sheet_feeds/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = REPO_ROOT / ".env"
GOOGLE_SERVICE_ACCOUNT = REPO_ROOT / "google" / "service_account_key.json"

FEED_BASE_URL = "https://spreadsheets.google.com/feeds/"
FEEDS_SCOPES = ["https://spreadsheets.google.com/feeds"]

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
GSX_NAMESPACE = "http://schemas.google.com/spreadsheets/2006/extended"
GS_NAMESPACE = "http://schemas.google.com/spreadsheets/2006"
ATOM_CONTENT_TYPE = "application/atom+xml"

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """Environment-derived settings."""

    spreadsheet_key: str | None
    service_account_key: Path
    base_url: str
    timeout: float


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def get_settings() -> Settings:
    """Read settings from the environment.

    Returns:
        Settings with defaults applied for anything unset.

    Raises:
        ValueError: If SHEET_FEEDS_TIMEOUT is not a number.
    """
    timeout = os.environ.get("SHEET_FEEDS_TIMEOUT")
    base_url = os.environ.get("SHEET_FEEDS_BASE_URL") or FEED_BASE_URL
    if not base_url.endswith("/"):
        base_url += "/"

    return Settings(
        spreadsheet_key=os.environ.get("GOOGLE_SPREADSHEET_KEY") or None,
        service_account_key=Path(
            os.environ.get("GOOGLE_SERVICE_ACCOUNT_KEY") or GOOGLE_SERVICE_ACCOUNT
        ),
        base_url=base_url,
        timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
    )


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
