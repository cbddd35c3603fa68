"""
Exception types raised outside the data-shaping core.

Parsing and structure detection never raise: a malformed agent payload
degrades to a single leaf node. Only configuration, connectivity and
authentication problems surface as exceptions, all derived from
BinmaveError so callers can catch them in one place.
"""

from __future__ import annotations


class BinmaveError(Exception):
    """Base class for all errors reported to the user."""


class ConfigError(BinmaveError):
    """A setting could not be parsed."""


class NotLoggedInError(BinmaveError):
    """No access token is configured."""

    def __init__(self, message: str = "not logged in. Set BINMAVE_TOKEN first") -> None:
        super().__init__(message)


class APIError(BinmaveError):
    """The service answered with a non-success status.

    Attributes:
        status_code: HTTP status code of the response.
        body: Raw response body, kept for the error banner.
    """

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error (status {status_code}): {body}")


class AuthenticationError(APIError):
    """The service rejected the access token (HTTP 401)."""

    def __init__(self, body: str = "") -> None:
        super().__init__(401, body)
        self.args = ("unauthorized: the access token was rejected",)


class ConnectionFailedError(BinmaveError):
    """The request never produced a response (timeout, DNS, refused...)."""


class ResultsFileError(BinmaveError):
    """A saved results file is missing or has an unexpected shape."""
