"""Shared pytest fixtures for Mosaic tests."""

import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from mosaic.api.main import create_app
from mosaic.core.config import MosaicConfig
from mosaic.core.likes import LikeLedger
from mosaic.core.models import Author, GalleryItem
from mosaic.core.repository import ItemRepository

# Fixed reference time so recency and trending assertions are deterministic.
REFERENCE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> MosaicConfig:
    """Create a test configuration that ignores the environment and .env file.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        MosaicConfig instance for testing (memory backend, sample data seeded)
    """
    return MosaicConfig(
        storage_backend="memory",
        data_file=temp_dir / "gallery.json",
        seed_sample_data=True,
        simulated_latency_ms=0,
        _env_file=None,
    )


@pytest.fixture
def make_item() -> Callable[..., GalleryItem]:
    """Factory building gallery items with sensible defaults.

    Items default to the Photography category, no tags, zero counters and a
    creation time ``int(id)`` hours before :data:`REFERENCE_TIME` (or exactly
    at it for non-numeric ids).

    Returns:
        Callable ``make_item(item_id, **overrides)``
    """

    def _make(item_id: str, **overrides) -> GalleryItem:
        hours = int(item_id) if item_id.isdigit() else 0
        created = REFERENCE_TIME - timedelta(hours=hours)
        fields = {
            "id": item_id,
            "title": f"Item {item_id}",
            "description": "",
            "image_url": f"https://example.com/{item_id}.jpg",
            "author": Author(id="user-test", name="Test Author"),
            "tags": [],
            "category": "Photography",
            "created_at": created,
            "updated_at": created,
            "likes": 0,
            "views": 0,
        }
        fields.update(overrides)
        return GalleryItem(**fields)

    return _make


@pytest.fixture
def fifty_items(make_item) -> list[GalleryItem]:
    """Fifty items with ids 1-50, newest first (id 1 is the newest)."""
    return [make_item(str(i), likes=i, views=i * 10) for i in range(1, 51)]


@pytest.fixture
def repository(fifty_items) -> ItemRepository:
    """In-memory repository holding the fifty test items."""
    return ItemRepository(seed=fifty_items)


@pytest.fixture
def ledger(repository: ItemRepository) -> LikeLedger:
    """Like ledger bound to the test repository."""
    return LikeLedger(repository)


@pytest.fixture
def test_client(test_config: MosaicConfig) -> Generator[TestClient, None, None]:
    """TestClient for an application seeded with the sample catalogue.

    The ``with`` block runs the application lifespan so the repository and
    like ledger exist on ``app.state``.
    """
    with TestClient(create_app(test_config)) as client:
        yield client


@pytest.fixture
def reference_time() -> datetime:
    """The fixed "now" used by :func:`make_item`."""
    return REFERENCE_TIME
