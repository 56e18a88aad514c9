"""Serialized offset-keyed page store with best-effort JSON persistence.

:class:`PageStore` owns the process-wide :class:`~pokecatalog.models.CacheSnapshot`:
the list pages fetched so far, keyed by offset, plus the last total count
the server reported. All state transitions run under one
:class:`asyncio.Lock`, and each mutation is applied without suspending, so
a cancelled caller either completes its write or never starts it.

Every :meth:`PageStore.put_page` schedules a background persist of the
whole snapshot. Persist tasks are serialized by a second lock and read the
snapshot only once they hold it, so the file always converges on the
newest state. The file is replaced through
:func:`~pokecatalog.config.atomic_write`. Disk failures are logged and
swallowed; they only cost the next run a warm start.

See Also:
    :class:`~pokecatalog.repository.CatalogRepository` -- the only caller
    in the library.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from pokecatalog.config import atomic_write
from pokecatalog.models import CacheSnapshot, Pokemon

logger = logging.getLogger(__name__)


class PageStore:
    """Disk-backed store of catalog pages keyed by offset.

    Exactly one instance should back a given file at a time; construct it
    once at startup and pass it to whatever needs it.

    Args:
        path: The JSON file backing the store.
        persist: When ``False`` the store stays purely in memory and never
            touches *path*.

    Example::

        store = PageStore(Path("~/.cache/pokecatalog/pokecache.json").expanduser())
        await store.load_from_disk()
        await store.put_page(0, items, total_count=1302)
        page = await store.get_page(0)
        await store.flush()
    """

    def __init__(self, path: Path, persist: bool = True) -> None:
        self._path = Path(path)
        self._persist = persist
        self._snapshot = CacheSnapshot()
        self._lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._generation = 0
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_page(self, offset: int) -> Optional[list[Pokemon]]:
        """Return the page stored at *offset*, or ``None`` on a miss."""
        async with self._lock:
            page = self._snapshot.pages.get(offset)
            return list(page) if page is not None else None

    async def all_items(self) -> list[Pokemon]:
        """Return every cached record by ascending offset, then page order.

        Never triggers a network call.
        """
        async with self._lock:
            return self._snapshot.all_items()

    async def total_count(self) -> Optional[int]:
        """The last total count reported by a list fetch, if any."""
        async with self._lock:
            return self._snapshot.total_count

    async def stats(self) -> dict[str, Any]:
        """Return a summary of the resident snapshot.

        Returns:
            A ``dict`` with ``path``, ``persist``, ``pages``, ``items``,
            ``offsets`` and ``total_count`` keys.
        """
        async with self._lock:
            offsets = sorted(self._snapshot.pages)
            return {
                "path": str(self._path),
                "persist": self._persist,
                "pages": len(offsets),
                "items": sum(len(self._snapshot.pages[o]) for o in offsets),
                "offsets": offsets,
                "total_count": self._snapshot.total_count,
            }

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def put_page(
        self,
        offset: int,
        items: Sequence[Pokemon],
        total_count: Optional[int] = None,
    ) -> None:
        """Insert or overwrite the page at *offset* and schedule a persist.

        A reported *total_count* replaces the stored one unconditionally;
        the last writer wins even if it reports a smaller catalog.
        """
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        async with self._lock:
            self._snapshot.pages[offset] = list(items)
            if total_count is not None:
                self._snapshot.total_count = total_count
            self._generation += 1
            self._schedule_persist()

    async def clear(self) -> None:
        """Empty the snapshot and delete the backing file.

        Persists scheduled before the call are invalidated so they cannot
        recreate the file. A missing file is not an error.
        """
        async with self._lock:
            self._snapshot = CacheSnapshot()
            self._generation += 1
        if not self._persist:
            return
        # Queued ahead of any persist scheduled after this point.
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._path.unlink, missing_ok=True)
            except OSError as exc:
                logger.warning("Could not delete page cache %s: %s", self._path, exc)

    async def load_from_disk(self) -> bool:
        """Replace the snapshot with the contents of the backing file.

        Any failure (missing file, unreadable or corrupt content) leaves the
        current snapshot untouched.

        Returns:
            ``True`` if the snapshot was replaced.
        """
        if not self._persist:
            return False
        async with self._lock:
            try:
                text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            except FileNotFoundError:
                logger.debug("No page cache at %s", self._path)
                return False
            except OSError as exc:
                logger.warning("Could not read page cache %s: %s", self._path, exc)
                return False

            try:
                snapshot = CacheSnapshot.model_validate_json(text)
            except ValidationError as exc:
                logger.warning("Ignoring corrupt page cache %s: %s", self._path, exc)
                return False

            self._snapshot = snapshot
            logger.debug(
                "Loaded %d cached pages from %s", len(snapshot.pages), self._path
            )
            return True

    async def flush(self) -> None:
        """Wait until every scheduled persist has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def _schedule_persist(self) -> None:
        """Spawn a background persist. Caller must hold ``self._lock``."""
        if not self._persist:
            return
        task = asyncio.get_running_loop().create_task(self._persist_snapshot(self._generation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist_snapshot(self, generation: int) -> None:
        try:
            async with self._write_lock:
                async with self._lock:
                    if generation != self._generation:
                        return
                    data = self._snapshot.to_json()
                await asyncio.to_thread(atomic_write, self._path, data)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Failed to persist page cache to %s: %s", self._path, exc)
