"""Tests for mosaic.core.likes - toggling, reading and persisting like state."""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from mosaic.core.errors import NotFoundError, RepositoryError
from mosaic.core.likes import LikeLedger, LikeStatus, MemoryLikeStore, SqliteLikeStore
from mosaic.core.repository import ItemRepository


class TestLikeLedger:
    """Test LikeLedger toggling semantics."""

    def test_first_toggle_likes(self, ledger, repository):
        """Liking an unliked item adds one like."""
        status = ledger.toggle("3")
        assert status == LikeStatus(item_id="3", is_liked=True, total_likes=4)
        assert repository.get_by_id("3").likes == 4

    def test_toggle_twice_restores_state(self, ledger, repository):
        """Two toggles leave both the set and the counter as they were."""
        ledger.toggle("3")
        status = ledger.toggle("3")
        assert status.is_liked is False
        assert status.total_likes == 3
        assert repository.get_by_id("3").likes == 3
        assert ledger.liked_ids() == []

    def test_unlike_floors_at_zero(self, make_item):
        """Unliking an item whose counter is already zero keeps it at zero."""
        repository = ItemRepository(seed=[make_item("1", likes=0)])
        store = MemoryLikeStore()
        store.add("1")
        ledger = LikeLedger(repository, store)

        status = ledger.toggle("1")
        assert status.is_liked is False
        assert status.total_likes == 0

    def test_unknown_item_changes_nothing(self, ledger, repository):
        """Toggling an unknown id raises and leaves every item untouched."""
        before = repository.stats()
        with pytest.raises(NotFoundError) as exc_info:
            ledger.toggle("missing")
        assert exc_info.value.message == "Item not found"
        assert exc_info.value.status_code == 404
        assert repository.stats() == before
        assert ledger.liked_ids() == []

    def test_get_reports_state(self, ledger):
        """get() reflects toggles without changing anything."""
        assert ledger.get("10") == LikeStatus("10", False, 10)
        ledger.toggle("10")
        assert ledger.get("10") == LikeStatus("10", True, 11)
        assert ledger.get("10") == LikeStatus("10", True, 11)

    def test_get_unknown_item(self, ledger):
        """Reading an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            ledger.get("missing")

    def test_liked_ids(self, ledger):
        """Liked ids are listed."""
        ledger.toggle("2")
        ledger.toggle("1")
        assert sorted(ledger.liked_ids()) == ["1", "2"]

    def test_status_wire_form(self):
        """LikeStatus serialises with camelCase keys."""
        assert LikeStatus("1", True, 5).to_wire() == {
            "itemId": "1",
            "isLiked": True,
            "totalLikes": 5,
        }

    def test_failed_store_write_leaves_counter(self, ledger, repository, monkeypatch):
        """If recording the like fails, the counter is not adjusted."""

        def broken_add(item_id):
            raise RepositoryError(f"Could not record like for {item_id}")

        monkeypatch.setattr(ledger._store, "add", broken_add)
        with pytest.raises(RepositoryError):
            ledger.toggle("4")
        assert repository.get_by_id("4").likes == 4

    def test_failed_counter_save_restores_membership(self, ledger, repository, monkeypatch):
        """If saving the counter fails, the item is not left marked as liked."""

        def broken_adjust(item_id, delta):
            raise RepositoryError("Could not save gallery items")

        monkeypatch.setattr(repository, "adjust_likes", broken_adjust)
        with pytest.raises(RepositoryError):
            ledger.toggle("4")
        assert ledger.get("4") == LikeStatus("4", False, 4)
        assert ledger.liked_ids() == []

    def test_failed_counter_save_on_unlike_keeps_like(self, ledger, repository, monkeypatch):
        """A failed unlike leaves the item liked with its counter unchanged."""
        ledger.toggle("4")

        def broken_adjust(item_id, delta):
            raise RepositoryError("Could not save gallery items")

        monkeypatch.setattr(repository, "adjust_likes", broken_adjust)
        with pytest.raises(RepositoryError):
            ledger.toggle("4")
        assert ledger.get("4") == LikeStatus("4", True, 5)


class TestConcurrentToggles:
    """Toggles from many threads keep the set and the counter in step."""

    def test_even_number_of_toggles_restores_state(self, ledger, repository):
        """Any interleaving of an even number of toggles ends where it began."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            statuses = list(pool.map(lambda _: ledger.toggle("3"), range(100)))

        assert repository.get_by_id("3").likes == 3
        assert ledger.liked_ids() == []
        assert sum(status.is_liked for status in statuses) == 50
        assert {status.total_likes for status in statuses} == {3, 4}

    def test_toggles_mixed_with_views(self, ledger, repository):
        """View increments on the same item neither lose likes nor get lost."""

        def work(n):
            if n % 2:
                repository.increment_views("8")
            else:
                ledger.toggle("8")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(work, range(200)))

        item = repository.get_by_id("8")
        assert item.likes == 8
        assert item.views == 80 + 100
        assert ledger.get("8").is_liked is False


class TestSqliteLikeStore:
    """Test the SQLite-backed liked set."""

    def test_creates_schema(self, temp_dir: Path):
        """The likes table exists after construction."""
        db_path = temp_dir / "nested" / "likes.db"
        SqliteLikeStore(db_path)

        with sqlite3.connect(db_path) as conn:
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert "likes" in tables

    def test_add_contains_remove(self, temp_dir: Path):
        """Basic membership operations."""
        store = SqliteLikeStore(temp_dir / "likes.db")
        assert store.contains("1") is False

        store.add("1")
        store.add("1")
        assert store.contains("1") is True
        assert store.all() == ["1"]

        store.remove("1")
        assert store.contains("1") is False
        assert store.all() == []

    def test_state_survives_new_instance(self, temp_dir: Path, repository):
        """A second ledger over the same database sees earlier likes."""
        db_path = temp_dir / "likes.db"
        LikeLedger(repository, SqliteLikeStore(db_path)).toggle("6")

        reopened = LikeLedger(repository, SqliteLikeStore(db_path))
        assert reopened.get("6").is_liked is True
        assert reopened.liked_ids() == ["6"]

    def test_sqlite_errors_become_repository_errors(self, temp_dir: Path):
        """Database failures surface as RepositoryError."""
        db_path = temp_dir / "likes.db"
        store = SqliteLikeStore(db_path)
        with sqlite3.connect(db_path) as conn:
            conn.execute("DROP TABLE likes")

        with pytest.raises(RepositoryError):
            store.contains("1")
