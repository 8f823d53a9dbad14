"""Unit tests for the MobileCoder API client."""

import json

import httpx
import pytest

from pymobilecoder.api import MobileCoderClient
from pymobilecoder.exceptions import (
    MobileCoderAPIError,
    MobileCoderAuthenticationError,
    MobileCoderInvalidResponseError,
    MobileCoderNetworkError,
    MobileCoderNotFoundError,
    MobileCoderPermissionError,
)

API_URL = "https://api.example.test/api"


def make_client(handler, access_token="tok"):
    """Create a client whose requests are answered by handler."""
    client = MobileCoderClient(access_token=access_token, api_url=API_URL)
    client._client = httpx.Client(transport=httpx.MockTransport(handler))
    return client


class TestMobileCoderClient:
    """Tests for client initialization."""

    def test_init_with_custom_api_url(self):
        """Test that a trailing slash is stripped."""
        client = MobileCoderClient(api_url="https://custom.api/")
        assert client.api_url == "https://custom.api"
        assert client.access_token is None

    def test_context_manager_closes(self):
        """Test that leaving the context closes the http client."""
        with make_client(lambda request: httpx.Response(200)) as client:
            http_client = client._client
        assert http_client.is_closed
        assert client._client is None


class TestAPIRequest:
    """Tests for the _request method."""

    def test_sends_bearer_token(self):
        """Test that the client token is sent as bearer token."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"success": True, "data": []})

        make_client(handler).list_files()
        assert seen["auth"] == "Bearer tok"
        assert seen["url"] == f"{API_URL}/sync/files"

    def test_per_call_token_overrides(self):
        """Test that an explicit token wins over the client token."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"success": True, "data": []})

        make_client(handler).list_files(access_token="other")
        assert seen["auth"] == "Bearer other"

    def test_no_token_no_header(self):
        """Test that no Authorization header is sent without a token."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"success": True, "data": {}})

        make_client(handler, access_token=None).login("a@b.c", "secret", "dev")
        assert seen["auth"] is None

    @pytest.mark.parametrize(
        "status,exception",
        [
            (401, MobileCoderAuthenticationError),
            (403, MobileCoderPermissionError),
            (404, MobileCoderNotFoundError),
            (500, MobileCoderAPIError),
        ],
    )
    def test_http_errors(self, status, exception):
        """Test mapping of HTTP status codes to exceptions."""
        client = make_client(lambda request: httpx.Response(status))
        with pytest.raises(exception):
            client.list_files()

    def test_error_message_from_body(self):
        """Test that the server message is included in the error."""
        client = make_client(
            lambda request: httpx.Response(400, json={"message": "Bad filename"})
        )
        with pytest.raises(MobileCoderAPIError, match="Bad filename"):
            client.list_files()

    def test_network_error(self):
        """Test that transport errors become network errors."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(MobileCoderNetworkError):
            make_client(handler).list_files()

    def test_non_json_response(self):
        """Test that an HTML response is rejected."""
        client = make_client(
            lambda request: httpx.Response(
                200, text="<html></html>", headers={"Content-Type": "text/html"}
            )
        )
        with pytest.raises(MobileCoderInvalidResponseError):
            client.list_files()

    def test_unsuccessful_envelope(self):
        """Test that success=false raises with the server message."""
        client = make_client(
            lambda request: httpx.Response(
                200, json={"success": False, "message": "Quota exceeded"}
            )
        )
        with pytest.raises(MobileCoderAPIError, match="Quota exceeded"):
            client.list_files()


class TestFileOperations:
    """Tests for the file endpoints."""

    def test_list_files(self):
        """Test listing remote files."""
        payload = {
            "success": True,
            "data": [
                {
                    "filename": "a.py",
                    "content": "x = 1\n",
                    "last_modified": "2025-01-15T10:30:00.000Z",
                },
                {"filename": "b.js", "content": ""},
            ],
        }
        client = make_client(lambda request: httpx.Response(200, json=payload))
        records = client.list_files()
        assert [r.key for r in records] == ["a.py", "b.js"]
        assert records[0].last_modified_ms == 1736937000000

    def test_list_files_requires_list(self):
        """Test that a non-list data member is rejected."""
        client = make_client(
            lambda request: httpx.Response(200, json={"success": True, "data": {}})
        )
        with pytest.raises(MobileCoderInvalidResponseError):
            client.list_files()

    def test_get_file_quotes_key(self):
        """Test that nested keys are sent as a single path segment."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.raw_path.decode()
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "data": {"content": "hi", "last_modified": None},
                },
            )

        record = make_client(handler).get_file("src/a b.py")
        assert seen["path"] == "/api/sync/files/src%2Fa%20b.py"
        assert record.key == "src/a b.py"
        assert record.content == "hi"

    def test_get_file_unsuccessful_is_not_found(self):
        """Test that success=false for a single file means not found."""
        client = make_client(
            lambda request: httpx.Response(200, json={"success": False})
        )
        with pytest.raises(MobileCoderNotFoundError):
            client.get_file("gone.py")

    def test_put_file_payload(self):
        """Test the upload request body."""
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        accepted = make_client(handler).put_file(
            "a.py", "x", "9dd4e461268c8034f5c8564e155c67a6", "2025-01-15T10:30:00.000Z"
        )
        assert accepted is True
        assert seen["method"] == "POST"
        assert seen["body"] == {
            "filename": "a.py",
            "content": "x",
            "checksum": "9dd4e461268c8034f5c8564e155c67a6",
            "lastModified": "2025-01-15T10:30:00.000Z",
        }

    def test_put_file_rejected(self):
        """Test that success=false is reported as False."""
        client = make_client(
            lambda request: httpx.Response(200, json={"success": False})
        )
        assert client.put_file("a.py", "x", "c", "t") is False


class TestAuthEndpoints:
    """Tests for the auth endpoints."""

    def test_login_payload(self):
        """Test login body and returned data."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"success": True, "data": {"token": "t", "user": {"id": 1}}},
            )

        data = make_client(handler, access_token=None).login(
            "dev@example.com", "secret", "laptop"
        )
        assert data == {"token": "t", "user": {"id": 1}}
        assert seen["url"] == f"{API_URL}/auth/login"
        assert seen["body"]["device_name"] == "laptop"
        assert seen["body"]["device_type"] == "desktop"
        assert seen["body"]["platform"] == "cli"

    def test_register_endpoint(self):
        """Test that register posts to /auth/register."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"success": True, "data": {"token": "t"}})

        make_client(handler, access_token=None).register("a@b.c", "secret", "d")
        assert seen["url"] == f"{API_URL}/auth/register"

    def test_get_me_rejected_token(self):
        """Test that a rejected token raises an authentication error."""
        client = make_client(lambda request: httpx.Response(401))
        with pytest.raises(MobileCoderAuthenticationError):
            client.get_me()
