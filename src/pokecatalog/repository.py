"""Catalog repository -- the one component callers use for catalog data.

:class:`CatalogRepository` composes a :class:`~pokecatalog.client.Transport`
and a :class:`~pokecatalog.cache.PageStore`:

* :meth:`~CatalogRepository.fetch_page` is a read-through cache keyed by
  offset alone. ``limit`` only shapes the request made on a miss.
* :meth:`~CatalogRepository.search` resolves a query in two tiers: an
  exact lookup on the server first, then a substring scan over every
  cached record, seeding the cache with two pages when it is empty.
* :meth:`~CatalogRepository.fetch_detail` passes straight through to the
  transport; detail records are never cached.

Transport errors propagate unchanged. The single exception is a 404 from
the exact search lookup, which means "no match".
"""

from __future__ import annotations

import re
from typing import Protocol
from urllib.parse import quote, urlencode

from pokecatalog.cache import PageStore
from pokecatalog.client import Transport
from pokecatalog.exceptions import ServerError
from pokecatalog.models import DetailRecord, ListResponse, Pokemon
from pokecatalog.output import get_output

_INTEGER = re.compile(r"[+-]?[0-9]+")
DEFAULT_COLLECTION = "pokemon"
SEARCH_SEED_PAGE_SIZE = 100


class CatalogProvider(Protocol):
    """The interface presentation-layer consumers depend on."""

    async def fetch_page(self, limit: int, offset: int) -> list[Pokemon]: ...

    async def search(self, query: str) -> list[Pokemon]: ...

    async def fetch_detail(self, id_or_name: str) -> DetailRecord: ...


class CatalogRepository:
    """Read-through catalog access backed by a page store.

    Args:
        transport: Performs the HTTP requests.
        store: Holds fetched list pages; shared by every repository in the
            process that targets the same cache file.
        collection: Catalog collection path, e.g. ``pokemon``.
        seed_page_size: Page size used to seed an empty store before a
            local search scan. Pages are fetched at offsets ``0`` and
            ``seed_page_size``.
    """

    def __init__(
        self,
        transport: Transport,
        store: PageStore,
        collection: str = DEFAULT_COLLECTION,
        seed_page_size: int = SEARCH_SEED_PAGE_SIZE,
    ) -> None:
        self._transport = transport
        self._store = store
        self._collection = collection.strip("/")
        self._seed_page_size = seed_page_size

    @property
    def store(self) -> PageStore:
        return self._store

    async def fetch_page(self, limit: int, offset: int) -> list[Pokemon]:
        """Return the page at *offset*, from the store when present.

        A cached page is returned whatever *limit* populated it, with no
        network call. On a miss the page is fetched with *limit*, mapped to
        :class:`~pokecatalog.models.Pokemon` records and stored together
        with the reported total count before being returned. Nothing is
        stored when the fetch fails.

        Raises:
            CatalogError: Any transport failure, unchanged.
        """
        output = get_output()
        cached = await self._store.get_page(offset)
        if cached is not None:
            output.debug(f"Cache hit for offset {offset} ({len(cached)} items)")
            return cached

        output.debug(f"Cache miss for offset {offset}, fetching {limit} items")
        query = urlencode({"limit": limit, "offset": offset})
        response = await self._transport.fetch(f"/{self._collection}?{query}", ListResponse)
        items = [Pokemon.from_ref(ref) for ref in response.results]

        await self._store.put_page(offset, items, total_count=response.count)
        return items

    async def search_server(self, query: str) -> list[Pokemon]:
        """Exact lookup by numeric id or lowercased name.

        Returns an empty list for a blank query or when the server answers
        404. A hit yields a single record carrying its categories.

        Raises:
            CatalogError: Any other transport failure.
        """
        trimmed = query.strip()
        if not trimmed:
            return []

        key = str(int(trimmed)) if _is_integer(trimmed) else trimmed.lower()
        try:
            detail = await self.fetch_detail(key)
        except ServerError as exc:
            if exc.is_not_found:
                get_output().debug(f"No exact match for {trimmed!r}")
                return []
            raise
        return [Pokemon.from_detail(detail)]

    async def search(self, query: str) -> list[Pokemon]:
        """Resolve *query* with the exact lookup, then a local scan.

        The local scan only runs when the exact lookup finds nothing. It
        covers every record in the store, seeding the store with two pages
        first when it is empty, and keeps records whose display name
        contains the query (case-insensitive) or whose number contains it
        as a decimal substring. Results keep store order: ascending offset,
        then page order.
        """
        exact = await self.search_server(query)
        if exact:
            return exact

        needle = query.strip()
        if not needle:
            return []

        candidates = await self._store.all_items()
        if not candidates:
            get_output().debug(
                f"Empty cache, seeding offsets 0 and {self._seed_page_size}"
            )
            first = await self.fetch_page(self._seed_page_size, 0)
            second = await self.fetch_page(self._seed_page_size, self._seed_page_size)
            candidates = first + second

        return [record for record in candidates if _matches(record, needle)]

    async def fetch_detail(self, id_or_name: str) -> DetailRecord:
        """Fetch the full detail record for an id or name, uncached.

        Raises:
            CatalogError: Any transport failure, unchanged.
        """
        path = quote(id_or_name.strip(), safe="")
        return await self._transport.fetch(f"/{self._collection}/{path}", DetailRecord)


def _is_integer(text: str) -> bool:
    return _INTEGER.fullmatch(text) is not None


def _matches(record: Pokemon, needle: str) -> bool:
    if needle.lower() in record.display_name.lower():
        return True
    return record.number is not None and needle in str(record.number)
