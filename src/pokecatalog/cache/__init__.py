"""Disk-backed page caching for pokecatalog.

This package provides :class:`PageStore`, the single owner of the cached
list pages. Pages are keyed by offset, read and written under a lock, and
persisted as one JSON file (``pokecache.json`` in the XDG cache directory
by default) after every write.

The store is consumed by :class:`~pokecatalog.repository.CatalogRepository`
and controlled by the ``cache_enabled`` and ``cache_file`` settings of
:class:`~pokecatalog.models.CatalogConfig`.
"""

from pokecatalog.cache.page_store import PageStore

__all__ = ["PageStore"]
