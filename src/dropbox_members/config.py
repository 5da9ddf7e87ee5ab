"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "https://api.dropboxapi.com/2/"


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    The access token has no default and will cause a KeyError at startup
    if the corresponding environment variable is missing. Transport and
    pagination limits have sensible defaults but can be overridden via
    environment variables.
    """

    # Required — no default, fail at startup if missing
    access_token: str

    # Transport and pagination limits — defaults provided, overridable via env
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_seconds: float = 30.0
    max_pages: int = 1000
    max_duration_seconds: float = 300.0
    page_limit: int = 100


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        DBX_ACCESS_TOKEN: Dropbox OAuth2 bearer token.

    Optional environment variables (with defaults):
        DBX_API_BASE_URL: Base URL of the RPC endpoints (default: https://api.dropboxapi.com/2/).
        DBX_REQUEST_TIMEOUT_SECONDS: Socket timeout per request (default: 30).
        DBX_MAX_PAGES: Max pages fetched for one query before giving up (default: 1000).
        DBX_MAX_DURATION_SECONDS: Max wall-clock time for one query (default: 300).
        DBX_PAGE_LIMIT: Page size requested when the caller does not pass one (default: 100).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        access_token=os.environ["DBX_ACCESS_TOKEN"],
        api_base_url=os.environ.get("DBX_API_BASE_URL", DEFAULT_API_BASE_URL),
        request_timeout_seconds=float(os.environ.get("DBX_REQUEST_TIMEOUT_SECONDS", "30")),
        max_pages=int(os.environ.get("DBX_MAX_PAGES", "1000")),
        max_duration_seconds=float(os.environ.get("DBX_MAX_DURATION_SECONDS", "300")),
        page_limit=int(os.environ.get("DBX_PAGE_LIMIT", "100")),
    )
