"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~pokecatalog.exceptions.CatalogError` subclass.
Shell wrappers can inspect the exit code to tell a missing entry apart
from an unreachable server without parsing stderr.

Example::

    $ pokecatalog show missingno
    $ echo $?
    4   # EXIT_NOT_FOUND -- the catalog has no such entry
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unusable URL."""

EXIT_NOT_FOUND = 4
"""The requested catalog entry was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The catalog API answered with a non-2xx status other than 404."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODING_ERROR = 7
"""The response body did not match the expected record shape."""
