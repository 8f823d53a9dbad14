"""PyMobileCoder - keep a local folder in sync with MobileCoder."""

from .api import MobileCoderClient
from .exceptions import (
    MobileCoderAPIError,
    MobileCoderAuthenticationError,
    MobileCoderConfigError,
    MobileCoderDownloadError,
    MobileCoderError,
    MobileCoderInvalidResponseError,
    MobileCoderNetworkError,
    MobileCoderNotFoundError,
    MobileCoderPermissionError,
    MobileCoderUploadError,
)
from .utils import calculate_checksum, is_syncable_file

__all__ = [
    "MobileCoderClient",
    "MobileCoderError",
    "MobileCoderAPIError",
    "MobileCoderAuthenticationError",
    "MobileCoderConfigError",
    "MobileCoderDownloadError",
    "MobileCoderInvalidResponseError",
    "MobileCoderNetworkError",
    "MobileCoderNotFoundError",
    "MobileCoderPermissionError",
    "MobileCoderUploadError",
    "calculate_checksum",
    "is_syncable_file",
]
