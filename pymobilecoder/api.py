"""API client for the MobileCoder remote file store."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import config
from .exceptions import (
    MobileCoderAPIError,
    MobileCoderAuthenticationError,
    MobileCoderInvalidResponseError,
    MobileCoderNetworkError,
    MobileCoderNotFoundError,
    MobileCoderPermissionError,
)
from .models import RemoteFileRecord

logger = logging.getLogger(__name__)

CLIENT_PLATFORM = "cli"


class MobileCoderClient:
    """Client for interacting with the MobileCoder API.

    Requests are never retried: a failed call surfaces as an exception and
    the caller decides what to do with it.
    """

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        timeout: float = 30.0,
    ):
        """Initialize MobileCoder API client.

        Args:
            access_token: Default bearer token; can be overridden per call
            api_url: Optional API URL (uses config if not provided)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.access_token = access_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.timeout = timeout

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> MobileCoderClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _auth_headers(self, access_token: str | None) -> dict[str, str]:
        token = access_token or self.access_token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _handle_http_error(self, e: httpx.HTTPStatusError) -> MobileCoderAPIError:
        """Map an HTTP error status to a MobileCoder exception.

        Args:
            e: The HTTP error exception

        Returns:
            Exception to raise
        """
        status_code = e.response.status_code

        if status_code == 401:
            return MobileCoderAuthenticationError(
                "Invalid or expired access token - please sign in again"
            )
        if status_code == 403:
            return MobileCoderPermissionError(
                "Access forbidden - check your permissions"
            )
        if status_code == 404:
            return MobileCoderNotFoundError("Resource not found")

        error_msg = f"API request failed with status {status_code}"
        # Try to extract more details from response body
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = (
                        error_data.get("message")
                        or error_data.get("error")
                        or error_data.get("detail")
                    )
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            logger.debug("Error response body is not JSON")
        return MobileCoderAPIError(error_msg)

    def _request(
        self,
        method: str,
        endpoint: str,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            access_token: Bearer token for this request (default: client token)
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            MobileCoderAPIError: If the request fails
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        headers = {**kwargs.pop("headers", {}), **self._auth_headers(access_token)}
        client = self._get_client()

        logger.debug("%s %s", method, url)
        try:
            response = client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._handle_http_error(e) from e
        except httpx.RequestError as e:
            raise MobileCoderNetworkError(f"Network error: {e}") from e

        if not response.content:
            return {}

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise MobileCoderInvalidResponseError(
                f"Unexpected response type: {content_type}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise MobileCoderInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    @staticmethod
    def _unwrap(response: Any) -> Any:
        """Return the ``data`` member of a successful response envelope."""
        if not isinstance(response, dict):
            raise MobileCoderInvalidResponseError(
                f"Unexpected response: {response!r}"
            )
        if not response.get("success"):
            message = response.get("message") or "Request was not successful"
            raise MobileCoderAPIError(message)
        return response.get("data")

    # =========================
    # File Operations
    # =========================

    def list_files(self, access_token: str | None = None) -> list[RemoteFileRecord]:
        """List all files in the remote store.

        Args:
            access_token: Bearer token (default: client token)

        Returns:
            List of remote file records
        """
        data = self._unwrap(
            self._request("GET", "/sync/files", access_token=access_token)
        )
        if not isinstance(data, list):
            raise MobileCoderInvalidResponseError("Expected a list of files")
        return [RemoteFileRecord.from_api_response(item) for item in data]

    def get_file(self, key: str, access_token: str | None = None) -> RemoteFileRecord:
        """Get a single remote file.

        Args:
            key: Remote key (relative path)
            access_token: Bearer token (default: client token)

        Returns:
            Remote file record with content and last modification time

        Raises:
            MobileCoderNotFoundError: If no file is stored under key
        """
        endpoint = f"/sync/files/{quote(key, safe='')}"
        response = self._request("GET", endpoint, access_token=access_token)
        if isinstance(response, dict) and not response.get("success"):
            raise MobileCoderNotFoundError(f"Remote file not found: {key}")
        data = self._unwrap(response)
        if not isinstance(data, dict):
            raise MobileCoderInvalidResponseError(f"Unexpected file data for {key}")
        return RemoteFileRecord.from_api_response(data, key=key)

    def put_file(
        self,
        key: str,
        content: str,
        checksum: str,
        last_modified: str,
        access_token: str | None = None,
    ) -> bool:
        """Create or update a remote file.

        Args:
            key: Remote key (relative path)
            content: Full text content
            checksum: Checksum of content
            last_modified: ISO timestamp of the modification
            access_token: Bearer token (default: client token)

        Returns:
            The ``success`` flag reported by the server
        """
        data = {
            "filename": key,
            "content": content,
            "checksum": checksum,
            "lastModified": last_modified,
        }
        response = self._request(
            "POST", "/sync/files", access_token=access_token, json=data
        )
        return bool(isinstance(response, dict) and response.get("success"))

    # =========================
    # Authentication
    # =========================

    def login(self, email: str, password: str, device_name: str) -> Any:
        """Get an access token by logging in.

        Args:
            email: User email
            password: User password
            device_name: Name of this device

        Returns:
            Response data with 'token' and 'user' keys
        """
        data = {
            "email": email,
            "password": password,
            "device_name": device_name,
            "device_type": "desktop",
            "platform": CLIENT_PLATFORM,
        }
        return self._unwrap(self._request("POST", "/auth/login", json=data))

    def register(self, email: str, password: str, device_name: str) -> Any:
        """Register a new account.

        Args:
            email: User email
            password: User password
            device_name: Name of this device

        Returns:
            Response data with 'token' and 'user' keys
        """
        data = {
            "email": email,
            "password": password,
            "device_name": device_name,
            "device_type": "desktop",
            "platform": CLIENT_PLATFORM,
        }
        return self._unwrap(self._request("POST", "/auth/register", json=data))

    def get_me(self, access_token: str | None = None) -> Any:
        """Get information about the user owning the token."""
        return self._unwrap(
            self._request("GET", "/auth/me", access_token=access_token)
        )
