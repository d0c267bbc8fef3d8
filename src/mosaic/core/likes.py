"""Like ledger: which items are liked, kept consistent with like counters.

There is no per-user identity in Mosaic, so the liked set is process-global:
every visitor shares one like state.  A toggle flips membership and adjusts
the item's ``likes`` counter under one lock, so the set and the counter never
drift apart.

Membership can live in memory (:class:`MemoryLikeStore`) or in a SQLite table
(:class:`SqliteLikeStore`) so liked state survives restarts.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from mosaic.core.errors import NotFoundError, RepositoryError
from mosaic.core.repository import ItemRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeStatus:
    """Like state of a single item."""

    item_id: str
    is_liked: bool
    total_likes: int

    def to_wire(self) -> dict[str, Any]:
        return {"itemId": self.item_id, "isLiked": self.is_liked, "totalLikes": self.total_likes}


class LikeStore(Protocol):
    """Membership storage for liked item ids."""

    def contains(self, item_id: str) -> bool: ...

    def add(self, item_id: str) -> None: ...

    def remove(self, item_id: str) -> None: ...

    def all(self) -> list[str]: ...


class MemoryLikeStore:
    """Liked set held in process memory."""

    def __init__(self) -> None:
        self._liked: set[str] = set()

    def contains(self, item_id: str) -> bool:
        return item_id in self._liked

    def add(self, item_id: str) -> None:
        self._liked.add(item_id)

    def remove(self, item_id: str) -> None:
        self._liked.discard(item_id)

    def all(self) -> list[str]:
        return sorted(self._liked)


class SqliteLikeStore:
    """Liked set persisted in a SQLite table.

    Unlike a read-only lookup, a failed write must not let the ledger adjust
    the like counter, so SQLite errors are logged and re-raised as
    :class:`RepositoryError`.
    """

    def __init__(self, db_path: Path):
        """Initialize the likes database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized likes database at {self.db_path}")

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS likes (
                    item_id TEXT PRIMARY KEY,
                    liked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_liked_at
                ON likes(liked_at DESC)
                """)
            conn.commit()

    def contains(self, item_id: str) -> bool:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT 1 FROM likes WHERE item_id = ? LIMIT 1", (item_id,))
                return cursor.fetchone() is not None
        except sqlite3.Error as e:
            logger.error(f"Error checking like status for {item_id}: {e}")
            raise RepositoryError(f"Could not read like status for {item_id}") from e

    def add(self, item_id: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                # INSERT OR IGNORE keeps repeated adds idempotent
                cursor.execute(
                    "INSERT OR IGNORE INTO likes (item_id, liked_at) VALUES (?, ?)",
                    (item_id, datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error adding like {item_id}: {e}")
            raise RepositoryError(f"Could not record like for {item_id}") from e

    def remove(self, item_id: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM likes WHERE item_id = ?", (item_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error removing like {item_id}: {e}")
            raise RepositoryError(f"Could not remove like for {item_id}") from e

    def all(self) -> list[str]:
        """Return liked ids, most recently liked first."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT item_id FROM likes ORDER BY liked_at DESC")
                return [row[0] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error listing likes: {e}")
            raise RepositoryError("Could not list likes") from e


class LikeLedger:
    """Toggle and read like state for repository items.

    Args:
        repository: Repository holding the authoritative ``likes`` counters.
        store: Membership store; defaults to :class:`MemoryLikeStore`.
    """

    def __init__(self, repository: ItemRepository, store: LikeStore | None = None):
        self._repository = repository
        self._store = store or MemoryLikeStore()
        self._lock = threading.Lock()

    def toggle(self, item_id: str) -> LikeStatus:
        """Like an unliked item or unlike a liked one.

        Liking adds one to the item's ``likes``; unliking removes one,
        never going below zero.

        Raises:
            NotFoundError: If ``item_id`` is unknown; nothing changes.
        """
        with self._lock, self._repository.lock:
            if self._repository.get_by_id(item_id) is None:
                raise NotFoundError(item_id)

            is_liked = not self._store.contains(item_id)
            if is_liked:
                self._store.add(item_id)
            else:
                self._store.remove(item_id)

            try:
                item = self._repository.adjust_likes(item_id, 1 if is_liked else -1)
            except RepositoryError:
                # The counter was not saved; put membership back as it was.
                if is_liked:
                    self._store.remove(item_id)
                else:
                    self._store.add(item_id)
                raise

            if item is None:
                raise RepositoryError(f"Item {item_id} vanished during like toggle")
            logger.info(f"Item {item_id!r} {'liked' if is_liked else 'unliked'}: {item.likes}")
            return LikeStatus(item_id=item_id, is_liked=is_liked, total_likes=item.likes)

    def get(self, item_id: str) -> LikeStatus:
        """Return the like state of ``item_id`` without changing it.

        Raises:
            NotFoundError: If ``item_id`` is unknown.
        """
        with self._lock:
            item = self._repository.get_by_id(item_id)
            if item is None:
                raise NotFoundError(item_id)
            return LikeStatus(
                item_id=item_id,
                is_liked=self._store.contains(item_id),
                total_likes=item.likes,
            )

    def liked_ids(self) -> list[str]:
        """Return every liked item id."""
        with self._lock:
            return self._store.all()
