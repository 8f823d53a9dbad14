"""Unit tests for data models."""

from pymobilecoder.models import AuthUser, RemoteFileRecord


class TestRemoteFileRecord:
    """Tests for RemoteFileRecord."""

    def test_from_api_response(self):
        """Test creating a record from an API file object."""
        record = RemoteFileRecord.from_api_response(
            {
                "filename": "src/a.py",
                "content": "print(1)\n",
                "last_modified": "2025-01-15T10:30:00.000Z",
                "checksum": "abc",
            }
        )
        assert record.key == "src/a.py"
        assert record.content == "print(1)\n"
        assert record.checksum == "abc"
        assert record.language == "python"
        assert record.last_modified_ms == 1736937000000

    def test_from_api_response_camel_case_and_key(self):
        """Test lastModified spelling and falling back to the given key."""
        record = RemoteFileRecord.from_api_response(
            {"lastModified": "2025-01-15T10:30:00.500Z"}, key="b.js"
        )
        assert record.key == "b.js"
        assert record.content == ""
        assert record.last_modified_ms == 1736937000500

    def test_unparsable_timestamp(self):
        """Test that a bad timestamp yields None."""
        record = RemoteFileRecord(key="a.py", last_modified="yesterday")
        assert record.last_modified_ms is None

    def test_size_in_bytes(self):
        """Test that size counts UTF-8 bytes."""
        assert RemoteFileRecord(key="a.txt", content="äb").size == 3

    def test_to_dict(self):
        """Test JSON output conversion."""
        record = RemoteFileRecord(key="a.md", content="# x")
        assert record.to_dict() == {
            "key": "a.md",
            "language": "markdown",
            "last_modified": None,
            "checksum": None,
            "size": 3,
        }


class TestAuthUser:
    """Tests for AuthUser."""

    def test_dict_conversion(self):
        """Test from_dict/to_dict."""
        data = {
            "id": "7",
            "email": "dev@example.com",
            "device_name": "laptop",
            "access_token": "tok",
        }
        assert AuthUser.from_dict(data).to_dict() == data

    def test_numeric_id(self):
        """Test that ids are stored as strings."""
        assert AuthUser.from_dict({"id": 7}).id == "7"
