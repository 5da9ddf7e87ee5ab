"""Dropbox API client with bearer token authentication."""

from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin

if TYPE_CHECKING:
    from dropbox_members.config import AppConfig

logger = logging.getLogger(__name__)

DROPBOX_API_BASE_URL = "https://api.dropboxapi.com/2/"
SUPPORTED_METHODS = frozenset({"POST"})
JSON_CONTENT_TYPE = "application/json"


class DropboxError(Exception):
    """Base class for every error raised by this package."""


class EncodingError(DropboxError):
    """Raised when a request body cannot be serialized to JSON."""


class TransportError(DropboxError):
    """Raised on connection, DNS, TLS or timeout failures."""


class DecodingError(DropboxError):
    """Raised when a response body is not valid JSON or has an unexpected shape."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ApiError(DropboxError):
    """Raised when the Dropbox API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str, error: Any = None) -> None:
        super().__init__(f"Dropbox API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.error = error


class InvalidArgumentError(DropboxError, ValueError):
    """Raised when a caller passes malformed query parameters."""


class CancelledError(DropboxError):
    """Raised when the caller aborts a query through its cancel event."""


class PaginationLimitError(DropboxError):
    """Raised when pagination does not converge (repeated cursor, page or time bound)."""


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class DropboxClient:
    """Authenticated client for the Dropbox RPC-style JSON endpoints."""

    def __init__(
        self,
        access_token: str,
        base_url: str = DROPBOX_API_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialise the client.

        Args:
            access_token: OAuth2 bearer token sent with every request.
            base_url: Base URL that relative endpoint paths are resolved against.
            timeout: Socket timeout in seconds for each request.
        """
        self._access_token = access_token
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_request(
        self,
        method: str,
        relative_path: str,
        body: Any = None,
    ) -> urllib_request.Request:
        """Build an authenticated request for an endpoint under the base URL.

        Args:
            method: HTTP method; must be one of SUPPORTED_METHODS.
            relative_path: Endpoint path relative to the base URL
                (e.g. "sharing/list_file_members").
            body: JSON-serializable request body, or None for no body.

        Returns:
            A urllib Request carrying Accept and Authorization headers, and
            a JSON Content-Type header when a body is present.

        Raises:
            ValueError: If the method is not supported.
            EncodingError: If the body cannot be serialized to JSON.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = urljoin(self._base_url, relative_path.lstrip("/"))
        headers = {
            "Accept": JSON_CONTENT_TYPE,
            "Authorization": f"Bearer {self._access_token}",
        }

        data: bytes | None = None
        if body is not None:
            try:
                data = json.dumps(body, allow_nan=False).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise EncodingError(
                    f"Cannot encode request body for {relative_path}: {exc}"
                ) from exc
            headers["Content-Type"] = JSON_CONTENT_TYPE

        return urllib_request.Request(url, data=data, headers=headers, method=method)

    def execute(self, request: urllib_request.Request) -> tuple[int, Any]:
        """Send a request and decode the JSON response body.

        The status code is returned as-is; non-2xx responses are not
        treated as failures here.

        Args:
            request: Request produced by build_request().

        Returns:
            Tuple of (HTTP status code, decoded JSON body).

        Raises:
            TransportError: On connection, DNS, TLS or timeout failure.
            DecodingError: If the response body is not valid JSON.
        """
        status, raw = self._send(request)
        try:
            return status, json.loads(raw)
        except ValueError as exc:
            text = raw.decode("utf-8", errors="replace")
            raise DecodingError(
                f"Response from {request.full_url} is not valid JSON", status_code=status, body=text
            ) from exc

    def post(self, relative_path: str, body: Any = None) -> dict[str, Any]:
        """Perform an authenticated POST and return the JSON object response.

        Args:
            relative_path: Endpoint path relative to the base URL.
            body: JSON-serializable request body.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            EncodingError: If the body cannot be serialized.
            TransportError: On network failure.
            ApiError: If the API returns a non-2xx status code.
            DecodingError: If a 2xx response body is not a JSON object.
        """
        request = self.build_request("POST", relative_path, body)
        try:
            status, payload = self.execute(request)
        except DecodingError as exc:
            if exc.status_code is not None and not _is_success(exc.status_code):
                # Dropbox answers some 400s with a plain-text body.
                raise ApiError(exc.status_code, exc.body.strip() or "empty response body") from exc
            raise

        logger.info("[post] request complete; path:%s;status:%d", relative_path, status)
        if not _is_success(status):
            message, error = _error_details(payload)
            logger.error(
                "[post] api error; path:%s;status:%d;summary:%s", relative_path, status, message
            )
            raise ApiError(status, message, error)
        if not isinstance(payload, dict):
            raise DecodingError(
                f"Expected a JSON object from {relative_path}, got {type(payload).__name__}",
                status_code=status,
            )
        return payload

    def _send(self, request: urllib_request.Request) -> tuple[int, bytes]:
        """Send the request and return the raw status and body."""
        try:
            with urllib_request.urlopen(request, timeout=self._timeout) as resp:
                return resp.status, resp.read()
        except HTTPError as exc:
            try:
                return exc.code, exc.read()
            except (OSError, HTTPException) as read_exc:
                raise TransportError(f"Failed reading error response: {read_exc}") from read_exc
        except (URLError, OSError, HTTPException) as exc:
            logger.error("[_send] transport failure; url:%s;error:%s", request.full_url, exc)
            raise TransportError(f"Request to {request.full_url} failed: {exc}") from exc


def _error_details(payload: Any) -> tuple[str, Any]:
    """Extract (error_summary, error) from a Dropbox error response body."""
    if isinstance(payload, dict):
        summary = payload.get("error_summary") or json.dumps(payload.get("error", payload))
        return str(summary), payload.get("error")
    return json.dumps(payload), None


def dropbox_client_from_config(config: AppConfig) -> DropboxClient:
    """Construct a DropboxClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DropboxClient instance.
    """
    return DropboxClient(
        access_token=config.access_token,
        base_url=config.api_base_url,
        timeout=config.request_timeout_seconds,
    )
