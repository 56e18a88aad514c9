"""Asynchronous single-request transport for the catalog API.

This module provides :class:`Transport`, a thin wrapper around
:class:`httpx.AsyncClient` that performs exactly one GET per call, decodes
the body into a Pydantic model and maps every failure into the closed
taxonomy of :mod:`pokecatalog.exceptions`:

- :class:`~pokecatalog.exceptions.InvalidURLError` -- the endpoint could
  not be resolved to a request URL.
- :class:`~pokecatalog.exceptions.ServerError` -- status outside ``200..299``.
- :class:`~pokecatalog.exceptions.DecodingError` -- the body did not match
  the requested model.
- :class:`~pokecatalog.exceptions.NetworkError` -- timeout, DNS or
  connection failure.
- :class:`~pokecatalog.exceptions.UnknownError` -- anything else raised while
  sending the request.

There are no retries and no caching at this layer; the repository owns
caching and the caller decides what to do with a failure.
"""

from __future__ import annotations

from typing import Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pokecatalog.exceptions import (
    DecodingError,
    InvalidURLError,
    NetworkError,
    ServerError,
    UnknownError,
)
from pokecatalog.output import get_output

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"

ModelT = TypeVar("ModelT", bound=BaseModel)


class Transport:
    """One-GET-per-call HTTP transport for the catalog API.

    Endpoints are either absolute URLs, used verbatim, or ``path[?query]``
    strings resolved against *base_url*. Can be used as an async context
    manager; otherwise the underlying client is created on first use and
    released by :meth:`aclose`.

    Args:
        base_url: Root of the catalog API. A trailing slash is optional.
        client: Optional pre-built :class:`httpx.AsyncClient` (for example
            one using :class:`httpx.MockTransport`). An injected client is
            not closed by :meth:`aclose`.

    Example::

        async with Transport() as transport:
            page = await transport.fetch("/pokemon?limit=20&offset=0", ListResponse)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> Transport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve_url(self, endpoint: str) -> httpx.URL:
        """Turn *endpoint* into the URL that :meth:`fetch` will request.

        An input with a scheme is used verbatim. Anything else is split
        into path and query; a single leading slash is dropped from the
        path before it is appended to the base URL, and the query is
        re-attached through :class:`httpx.QueryParams` so special
        characters are percent-encoded.

        Raises:
            InvalidURLError: If the endpoint or base URL cannot be parsed,
                or an absolute endpoint has no host.
        """
        try:
            candidate = httpx.URL(endpoint)
            if candidate.scheme:
                if not candidate.host:
                    raise InvalidURLError(endpoint, "absolute URL without a host")
                return candidate

            path, separator, query = endpoint.partition("?")
            if path.startswith("/"):
                path = path[1:]

            base = httpx.URL(self._base_url)
            if not base.scheme or not base.host:
                raise InvalidURLError(self._base_url, "base URL must be absolute")
            url = base.copy_with(path=base.path + path)
            if separator and query:
                url = url.copy_with(params=httpx.QueryParams(query))
            return url
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise InvalidURLError(endpoint, str(exc)) from exc

    async def fetch(self, endpoint: str, model: type[ModelT]) -> ModelT:
        """GET *endpoint* once and decode the body into *model*.

        Args:
            endpoint: Absolute URL, or path with optional query string
                relative to the base URL.
            model: The Pydantic model describing the expected body.

        Returns:
            The validated *model* instance.

        Raises:
            InvalidURLError: The endpoint could not be resolved.
            ServerError: The status code was outside ``200..299``.
            DecodingError: The body was not valid JSON for *model*.
            NetworkError: A transport-level failure occurred.
            UnknownError: Any other failure while sending the request.
        """
        url = self.resolve_url(endpoint)
        client = self._ensure_client()
        output = get_output()
        output.debug(f"GET {url}")

        try:
            response = await client.get(url)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(str(url), str(exc)) from exc
        except httpx.TransportError as exc:
            raise NetworkError(exc) from exc
        except Exception as exc:
            raise UnknownError(exc) from exc

        output.debug(f"HTTP {response.status_code} {url}")
        if not 200 <= response.status_code <= 299:
            raise ServerError(response.status_code)

        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodingError(exc) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
            self._owns_client = True
        return self._client
