"""Exception hierarchy for pokecatalog.

The transport surfaces every failure as one member of a closed taxonomy and
the repository propagates it unchanged, except for a 404 during the exact
search lookup. All exceptions inherit from :class:`CatalogError`, which
carries an ``exit_code`` attribute mapped to a constant from
:mod:`pokecatalog.exit_codes`. The top-level handler in
:func:`pokecatalog.app.main` catches ``CatalogError`` and exits with that
code.

Subclass hierarchy::

    CatalogError (exit 1)
    +-- InvalidURLError   (exit 2)
    +-- NetworkError      (exit 6)
    +-- DecodingError     (exit 7)
    +-- ServerError       (exit 4 for 404, otherwise 5)
    +-- UnknownError      (exit 1)
    +-- ConfigError       (exit 1)
"""

from __future__ import annotations

from typing import Optional

from pokecatalog.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODING_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class CatalogError(Exception):
    """Base exception for all pokecatalog errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidURLError(CatalogError):
    """Raised when an endpoint string cannot be resolved to a request URL."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, endpoint: str, reason: str = "") -> None:
        self.endpoint = endpoint
        message = f"Invalid URL: {endpoint!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NetworkError(CatalogError):
    """Raised on transport-level failures (timeout, DNS resolution, connection reset).

    The originating :mod:`httpx` exception is kept on :attr:`cause`.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class DecodingError(CatalogError):
    """Raised when a response body does not match the expected record shape."""

    exit_code = EXIT_DECODING_ERROR

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Decoding error: {cause}")


class ServerError(CatalogError):
    """Raised when the API answers with a status outside ``200..299``.

    Attributes:
        status_code: The HTTP status returned by the server.
    """

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(
            f"Server error: {status_code}",
            exit_code=EXIT_NOT_FOUND if status_code == 404 else EXIT_SERVER_ERROR,
        )

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class UnknownError(CatalogError):
    """Fallback for request failures that fit no other category."""

    def __init__(self, cause: Optional[Exception] = None) -> None:
        self.cause = cause
        message = "Unknown error occurred"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ConfigError(CatalogError):
    """Raised for configuration problems (unreadable config file, unknown keys)."""

    exit_code = EXIT_GENERIC_FAILURE
