"""Data models for MobileCoder API responses."""

from dataclasses import dataclass
from typing import Any, Optional

from .utils import get_language_from_filename, parse_iso_timestamp, to_epoch_ms


@dataclass
class RemoteFileRecord:
    """A file stored in the MobileCoder remote store."""

    key: str
    """Remote key; equal to the file's relative path"""

    content: str = ""
    """Raw text content"""

    last_modified: Optional[str] = None
    """ISO timestamp of the last remote modification"""

    checksum: Optional[str] = None
    """Content checksum reported by the server (informational only)"""

    @property
    def language(self) -> str:
        """Editor language derived from the file extension."""
        return get_language_from_filename(self.key)

    @property
    def last_modified_ms(self) -> Optional[int]:
        """Last modification time in epoch milliseconds, None if unparsable."""
        dt = parse_iso_timestamp(self.last_modified)
        if dt is None:
            return None
        return to_epoch_ms(dt)

    @property
    def size(self) -> int:
        """Content size in bytes."""
        return len(self.content.encode("utf-8"))

    @classmethod
    def from_api_response(
        cls, data: dict[str, Any], key: Optional[str] = None
    ) -> "RemoteFileRecord":
        """Create a record from a file object returned by the API.

        Args:
            data: File object (``filename``, ``content``, ``last_modified``)
            key: Key to use when the object carries no ``filename``
        """
        return cls(
            key=data.get("filename") or key or "",
            content=data.get("content") or "",
            last_modified=data.get("last_modified") or data.get("lastModified"),
            checksum=data.get("checksum"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "key": self.key,
            "language": self.language,
            "last_modified": self.last_modified,
            "checksum": self.checksum,
            "size": self.size,
        }


@dataclass
class AuthUser:
    """The signed in user."""

    id: str
    email: str
    device_name: str
    access_token: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthUser":
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email", ""),
            device_name=data.get("device_name", ""),
            access_token=data.get("access_token", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "device_name": self.device_name,
            "access_token": self.access_token,
        }
