"""Item repository with pluggable backing stores.

The repository owns the authoritative list of gallery items.  It is an
explicitly constructed object that the API injects into request handlers;
there is no module-level item list.

Ordering
--------
Items are kept newest-first.  :meth:`ItemRepository.insert` prepends, and
nothing ever removes an item.

Concurrency
-----------
FastAPI runs sync dependencies and handlers in a thread pool and one process
serves many callers, so every read-modify-write (view increments, like
adjustments, id allocation plus insert) runs under a single re-entrant lock.
Callers receive deep copies; mutating a returned item never changes the
stored one.

Backends
--------
A backend only loads and saves plain dictionaries in wire (camelCase) form:

- :class:`MemoryBackend` keeps nothing beyond the process lifetime.
- :class:`JsonFileBackend` persists the whole list to a single JSON file and
  repairs it on load, dropping entries that cannot be mapped back to an item.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as SchemaError

from mosaic.core.config import MosaicConfig
from mosaic.core.errors import DuplicateIdError, RepositoryError
from mosaic.core.models import GalleryItem
from mosaic.core.sample_data import sample_items

logger = logging.getLogger(__name__)


class ItemBackend(Protocol):
    """Storage protocol used by :class:`ItemRepository`."""

    name: str

    def load(self) -> list[dict[str, Any]]: ...

    def save(self, entries: list[dict[str, Any]]) -> None: ...


class MemoryBackend:
    """Backend that keeps items only in process memory."""

    name = "memory"

    def load(self) -> list[dict[str, Any]]:
        return []

    def save(self, entries: list[dict[str, Any]]) -> None:
        pass


class JsonFileBackend:
    """Backend that stores every item in one JSON list on disk.

    The load rule is intentionally conservative:

    - if the file is missing, empty or invalid JSON, return an empty list
    - if the top-level value is not a list, return an empty list
    - drop entries that are not objects or have no ``id``

    When entries are dropped the cleaned list is written back immediately so
    later reads observe the corrected contents.
    """

    name = "json"

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as handle:
                    raw_entries = json.load(handle)
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable gallery file {self.path}: {e}")
                raw_entries = []
        else:
            raw_entries = []

        if not isinstance(raw_entries, list):
            raw_entries = []

        cleaned = [entry for entry in raw_entries if isinstance(entry, dict) and entry.get("id")]

        if cleaned != raw_entries:
            logger.info(
                f"Pruned {len(raw_entries) - len(cleaned)} stale entries from {self.path}"
            )
            self.save(cleaned)

        return cleaned

    def save(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2)


class ItemRepository:
    """Thread-safe, newest-first store of gallery items.

    Ids are allocated by :meth:`next_id` from a monotonic counter that starts
    one past the largest numeric id loaded.  Non-numeric ids are tolerated in
    storage; they simply do not advance the counter, and the counter skips any
    value that is already taken.

    Args:
        backend: Backing store; defaults to :class:`MemoryBackend`.
        seed: Items to install when the backend starts out empty.
    """

    def __init__(
        self,
        backend: ItemBackend | None = None,
        *,
        seed: Iterable[GalleryItem] | None = None,
    ):
        self._backend = backend or MemoryBackend()
        self._lock = threading.RLock()
        self._items: list[GalleryItem] = []
        self._index: dict[str, GalleryItem] = {}

        for entry in self._backend.load():
            try:
                item = GalleryItem.model_validate(entry)
            except SchemaError as e:
                logger.warning(f"Skipping invalid stored item {entry.get('id')!r}: {e}")
                continue
            if item.id in self._index:
                logger.warning(f"Skipping duplicate stored item id {item.id!r}")
                continue
            self._items.append(item)
            self._index[item.id] = item

        if not self._items and seed is not None:
            for item in seed:
                if item.id in self._index:
                    raise DuplicateIdError(item.id)
                stored = item.model_copy(deep=True)
                self._items.append(stored)
                self._index[stored.id] = stored
            self._persist(self._items)
            logger.info(f"Seeded repository with {len(self._items)} items")

        self._counter = max((_numeric_id(item.id) for item in self._items), default=0) + 1
        logger.info(
            f"ItemRepository ready: {len(self._items)} items, backend={self._backend.name}"
        )

    @classmethod
    def from_config(cls, cfg: MosaicConfig) -> ItemRepository:
        """Build a repository using the backend and seeding rules in ``cfg``."""
        backend: ItemBackend
        if cfg.storage_backend == "json":
            backend = JsonFileBackend(cfg.data_file)
        else:
            backend = MemoryBackend()
        seed = sample_items() if cfg.seed_sample_data else None
        return cls(backend, seed=seed)

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def count(self) -> int:
        return len(self)

    def get_all(self) -> list[GalleryItem]:
        """Return a snapshot of every item, newest first."""
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items]

    def get_by_id(self, item_id: str) -> GalleryItem | None:
        """Return a copy of the item with ``item_id``, or None."""
        with self._lock:
            item = self._index.get(item_id)
            logger.debug(f"Lookup {item_id!r}: {'found' if item else 'missing'}")
            return item.model_copy(deep=True) if item else None

    def next_id(self) -> str:
        """Allocate a fresh, never-used item id."""
        with self._lock:
            while str(self._counter) in self._index:
                self._counter += 1
            new_id = str(self._counter)
            self._counter += 1
            return new_id

    def insert(self, item: GalleryItem) -> GalleryItem:
        """Prepend ``item`` to the repository.

        The new list is saved before it replaces the in-memory one, so a
        failed save leaves the repository unchanged.

        Args:
            item: Fully populated item.

        Returns:
            A copy of the stored item.

        Raises:
            DuplicateIdError: If an item with the same id already exists.
            RepositoryError: If the backend cannot save the new list.
        """
        with self._lock:
            if item.id in self._index:
                raise DuplicateIdError(item.id)
            stored = item.model_copy(deep=True)
            self._persist([stored, *self._items])
            self._items.insert(0, stored)
            self._index[stored.id] = stored
            logger.info(f"Inserted item {stored.id!r}; {len(self._items)} items stored")
            return stored.model_copy(deep=True)

    def increment_views(self, item_id: str) -> GalleryItem | None:
        """Atomically add one view to an item.

        Returns:
            The updated item, or None if ``item_id`` is unknown.
        """
        with self._lock:
            item = self._index.get(item_id)
            if item is None:
                return None
            return self._replace(item.model_copy(update={"views": item.views + 1}, deep=True))

    def adjust_likes(self, item_id: str, delta: int) -> GalleryItem | None:
        """Atomically add ``delta`` to an item's likes, flooring at zero.

        Returns:
            The updated item, or None if ``item_id`` is unknown.
        """
        with self._lock:
            item = self._index.get(item_id)
            if item is None:
                return None
            likes = max(0, item.likes + delta)
            return self._replace(item.model_copy(update={"likes": likes}, deep=True))

    def stats(self) -> dict[str, Any]:
        """Return storage statistics for the stats endpoint."""
        with self._lock:
            category_counts: dict[str, int] = {}
            for item in self._items:
                category_counts[item.category] = category_counts.get(item.category, 0) + 1
            return {
                "backend": self._backend.name,
                "totalItems": len(self._items),
                "totalLikes": sum(item.likes for item in self._items),
                "totalViews": sum(item.views for item in self._items),
                "categoryCounts": category_counts,
            }

    @property
    def lock(self) -> threading.RLock:
        """The repository lock, for callers that must span several operations."""
        return self._lock

    def _replace(self, updated: GalleryItem) -> GalleryItem:
        # Caller holds the lock.  Save first, then swap the stored item in place.
        position = self._items.index(self._index[updated.id])
        candidate = list(self._items)
        candidate[position] = updated
        self._persist(candidate)
        self._items[position] = updated
        self._index[updated.id] = updated
        return updated.model_copy(deep=True)

    def _persist(self, items: list[GalleryItem]) -> None:
        try:
            self._backend.save([item.to_wire() for item in items])
        except OSError as e:
            logger.error(f"Saving {len(items)} items to {self._backend.name} backend failed: {e}")
            raise RepositoryError("Could not save gallery items") from e


def _numeric_id(item_id: str) -> int:
    try:
        return int(item_id)
    except ValueError:
        return 0
