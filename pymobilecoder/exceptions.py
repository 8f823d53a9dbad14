"""Exceptions raised by pymobilecoder."""


class MobileCoderError(Exception):
    """Base exception for all pymobilecoder errors."""


class MobileCoderConfigError(MobileCoderError):
    """Configuration is missing or invalid (e.g. no sync directory)."""


class MobileCoderAPIError(MobileCoderError):
    """The remote API returned an error or could not be reached."""


class MobileCoderAuthenticationError(MobileCoderAPIError):
    """No access token is available or the server rejected it."""


class MobileCoderPermissionError(MobileCoderAPIError):
    """The operation is not permitted."""


class MobileCoderNotFoundError(MobileCoderAPIError):
    """The requested remote file does not exist."""


class MobileCoderNetworkError(MobileCoderAPIError):
    """Transport level failure (connection refused, timeout, DNS...)."""


class MobileCoderInvalidResponseError(MobileCoderAPIError):
    """The server response could not be understood."""


class MobileCoderUploadError(MobileCoderAPIError):
    """The server did not accept an uploaded file."""


class MobileCoderDownloadError(MobileCoderAPIError):
    """A remote file could not be downloaded or written locally."""
