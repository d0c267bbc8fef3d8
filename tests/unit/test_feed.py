"""Tests for mosaic.client.feed - the infinite-scroll accumulator.

Tests cover:
- Accumulating pages in order until the last page.
- Skipping items repeated across overlapping pages.
- Discarding responses that arrive after a parameter change.
- Errors and cancellations keeping accumulated items, and retrying the failed page.
- Page cache expiry and invalidation on refresh.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from mosaic.client.feed import FeedStatus, GalleryFeed, PageCache, PageResponse, local_fetcher
from mosaic.core.errors import TransientFetchError
from mosaic.core.query import QueryParams, query_items
from mosaic.core.repository import ItemRepository


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingFetcher:
    """Fetcher over a repository that records every request it serves."""

    def __init__(self, repository: ItemRepository):
        self._inner = local_fetcher(repository)
        self.calls: list[QueryParams] = []

    async def __call__(self, params: QueryParams) -> PageResponse:
        self.calls.append(params)
        return await self._inner(params)


def _ids(items):
    return [item.id for item in items]


class TestGalleryFeed:
    """Test accumulation and the load state machine."""

    def test_initial_state(self, repository):
        """A new feed is idle and empty."""
        feed = GalleryFeed(local_fetcher(repository))
        assert feed.status == FeedStatus.IDLE
        assert feed.items == []
        assert feed.page == 0
        assert feed.is_loading is False
        assert feed.is_complete is False

    @pytest.mark.asyncio
    async def test_accumulates_all_pages(self, repository):
        """Loading every page yields each item exactly once, in order."""
        feed = GalleryFeed(local_fetcher(repository), QueryParams(limit=12))
        await feed.start()
        assert len(feed.items) == 12
        assert feed.has_next is True
        while await feed.load_more():
            pass

        assert _ids(feed.items) == [str(i) for i in range(1, 51)]
        assert feed.page == 5
        assert feed.total == 50
        assert feed.status == FeedStatus.LOADED
        assert feed.is_complete is True

    @pytest.mark.asyncio
    async def test_load_more_ignored_when_complete(self, make_item):
        """Nothing is fetched once the last page is merged."""
        repository = ItemRepository(seed=[make_item(str(i)) for i in range(1, 4)])
        fetcher = CountingFetcher(repository)
        feed = GalleryFeed(fetcher)
        await feed.start()

        assert await feed.load_more() is False
        assert feed.is_complete is True
        assert len(fetcher.calls) == 1

    @pytest.mark.asyncio
    async def test_load_more_ignored_before_start(self, repository):
        """load_more does nothing while the feed is idle."""
        feed = GalleryFeed(local_fetcher(repository))
        assert await feed.load_more() is False
        assert feed.items == []

    @pytest.mark.asyncio
    async def test_overlapping_pages_are_deduplicated(self, repository, make_item, reference_time):
        """An item created between page fetches does not duplicate the boundary item."""
        feed = GalleryFeed(local_fetcher(repository), QueryParams(limit=12))
        await feed.start()
        repository.insert(make_item("new", created_at=reference_time + timedelta(hours=1)))
        await feed.load_more()

        ids = _ids(feed.items)
        assert len(ids) == len(set(ids))
        assert ids == [str(i) for i in range(1, 24)]
        assert "new" not in ids

    @pytest.mark.asyncio
    async def test_stale_load_more_discarded_after_param_change(self, repository, make_item):
        """A page that completes after the filters change never reaches the new list."""
        repository.insert(make_item("900", category="Nature"))
        inner = local_fetcher(repository)
        release = asyncio.Event()

        async def fetcher(params: QueryParams) -> PageResponse:
            if params.category == "" and params.page == 2:
                await release.wait()
            return await inner(params)

        feed = GalleryFeed(fetcher, QueryParams(limit=12))
        await feed.start()
        pending = asyncio.create_task(feed.load_more())
        await asyncio.sleep(0)
        assert feed.status == FeedStatus.LOADING_MORE

        changed = await feed.set_params(QueryParams(category="Nature", limit=12))
        release.set()

        assert await pending is False
        assert changed is True
        assert _ids(feed.items) == ["900"]
        assert feed.fingerprint == "_Nature__created_desc"
        assert feed.status == FeedStatus.LOADED

    @pytest.mark.asyncio
    async def test_same_params_do_not_reload(self, repository):
        """Setting identical parameters is a no-op."""
        fetcher = CountingFetcher(repository)
        feed = GalleryFeed(fetcher, QueryParams(query="item"))
        await feed.start()

        assert await feed.set_params(QueryParams(query="item", page=3)) is False
        assert len(fetcher.calls) == 1

    @pytest.mark.asyncio
    async def test_param_change_resets_to_page_one(self, repository):
        """A new fingerprint discards accumulated items and reloads page 1."""
        feed = GalleryFeed(local_fetcher(repository), QueryParams(limit=10))
        await feed.start()
        await feed.load_more()
        await feed.set_params(QueryParams(sort_by="likes", limit=10))

        assert feed.page == 1
        assert _ids(feed.items) == [str(i) for i in range(50, 40, -1)]

    @pytest.mark.asyncio
    async def test_transient_error_keeps_items_and_retry_recovers(self, repository):
        """A failed page keeps earlier items; retry fetches the same page."""
        inner = local_fetcher(repository)
        failures = {"remaining": 1}

        async def flaky(params: QueryParams) -> PageResponse:
            if params.page == 2 and failures["remaining"]:
                failures["remaining"] -= 1
                raise TransientFetchError("Could not load page 2: connection reset")
            return await inner(params)

        feed = GalleryFeed(flaky, QueryParams(limit=12))
        await feed.start()

        assert await feed.load_more() is False
        assert feed.status == FeedStatus.ERROR
        assert _ids(feed.items) == [str(i) for i in range(1, 13)]
        assert isinstance(feed.error, TransientFetchError)
        assert feed.page == 1

        assert await feed.retry() is True
        assert feed.status == FeedStatus.LOADED
        assert feed.error is None
        assert _ids(feed.items) == [str(i) for i in range(1, 25)]

    @pytest.mark.asyncio
    async def test_cancelled_load_more_can_be_retried(self, repository):
        """Cancelling a page fetch leaves a retryable error, not a stuck load."""
        inner = local_fetcher(repository)
        hang = {"page_two": True}

        async def slow(params: QueryParams) -> PageResponse:
            if params.page == 2 and hang["page_two"]:
                await asyncio.Event().wait()
            return await inner(params)

        feed = GalleryFeed(slow, QueryParams(limit=12))
        await feed.start()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(feed.load_more(), timeout=0.05)

        assert feed.is_loading is False
        assert feed.status == FeedStatus.ERROR
        assert isinstance(feed.error, TransientFetchError)
        assert _ids(feed.items) == [str(i) for i in range(1, 13)]

        hang["page_two"] = False
        assert await feed.retry() is True
        assert feed.status == FeedStatus.LOADED
        assert _ids(feed.items) == [str(i) for i in range(1, 25)]

    @pytest.mark.asyncio
    async def test_cancelled_start_can_be_retried(self, repository):
        """A cancelled first load can be retried from the error state."""
        inner = local_fetcher(repository)
        hang = {"first": True}

        async def slow(params: QueryParams) -> PageResponse:
            if hang["first"]:
                await asyncio.Event().wait()
            return await inner(params)

        feed = GalleryFeed(slow)
        task = asyncio.create_task(feed.start())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert feed.status == FeedStatus.ERROR
        assert feed.is_loading is False

        hang["first"] = False
        assert await feed.retry() is True
        assert len(feed.items) == 12

    @pytest.mark.asyncio
    async def test_initial_failure_then_retry(self, repository):
        """A failed first page leaves an empty feed that retry can load."""
        inner = local_fetcher(repository)
        calls = {"count": 0}

        async def flaky(params: QueryParams) -> PageResponse:
            calls["count"] += 1
            if calls["count"] == 1:
                raise TransientFetchError("server unavailable")
            return await inner(params)

        feed = GalleryFeed(flaky)
        await feed.start()
        assert feed.status == FeedStatus.ERROR

        assert await feed.retry() is True
        assert len(feed.items) == 12

    @pytest.mark.asyncio
    async def test_retry_ignored_without_error(self, repository):
        """retry only acts from the error state."""
        feed = GalleryFeed(local_fetcher(repository))
        await feed.start()
        assert await feed.retry() is False

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        """Errors other than TransientFetchError are raised to the caller."""

        async def broken(params: QueryParams) -> PageResponse:
            raise RuntimeError("bug")

        feed = GalleryFeed(broken)
        with pytest.raises(RuntimeError):
            await feed.start()
        assert feed.status == FeedStatus.ERROR

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cached_first_page(self, repository):
        """start() reuses a fresh cached page; refresh() always refetches it."""
        fetcher = CountingFetcher(repository)
        feed = GalleryFeed(fetcher, cache=PageCache(clock=FakeClock()))
        await feed.start()
        await feed.start()
        assert len(fetcher.calls) == 1

        await feed.refresh()
        assert len(fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_refresh_sees_new_items(self, repository, make_item, reference_time):
        """Items created before a refresh appear at the top."""
        feed = GalleryFeed(local_fetcher(repository))
        await feed.start()
        repository.insert(make_item("new", created_at=reference_time + timedelta(hours=1)))
        await feed.refresh()

        assert feed.items[0].id == "new"


class TestPageCache:
    """Test the short-lived page cache."""

    def _response(self, repository, params):
        result = query_items(repository.get_all(), params)
        return PageResponse(data=result.data, pagination=result.pagination)

    def test_entries_expire(self, repository):
        """Entries older than the TTL are dropped."""
        clock = FakeClock()
        cache = PageCache(ttl=5.0, clock=clock)
        params = QueryParams()
        cache.put(params, self._response(repository, params))

        clock.now = 4.9
        assert cache.get(params) is not None
        clock.now = 5.1
        assert cache.get(params) is None

    def test_keyed_by_page_and_limit(self, repository):
        """Different pages and sizes are cached separately."""
        cache = PageCache(clock=FakeClock())
        params = QueryParams()
        cache.put(params, self._response(repository, params))

        assert cache.get(params.with_page(2)) is None
        assert cache.get(params.with_page(1, 24)) is None
        assert cache.get(QueryParams(query="x")) is None

    def test_invalidate(self, repository):
        """invalidate drops one page or every page of a fingerprint."""
        cache = PageCache(clock=FakeClock())
        base = QueryParams()
        for page in (1, 2, 3):
            params = base.with_page(page)
            cache.put(params, self._response(repository, params))
        other = QueryParams(category="Nature")
        cache.put(other, self._response(repository, other))

        assert cache.invalidate(base.fingerprint(), page=1) == 1
        assert cache.invalidate(base.fingerprint()) == 2
        assert cache.get(other) is not None

        cache.clear()
        assert cache.get(other) is None


class TestPageResponse:
    """Test parsing listing bodies."""

    def test_from_wire(self, repository):
        """A serialised listing page parses back into items and metadata."""
        body = query_items(repository.get_all(), QueryParams(limit=5, page=2)).to_wire()
        response = PageResponse.from_wire(body)
        assert _ids(response.data) == ["6", "7", "8", "9", "10"]
        assert response.pagination.page == 2
        assert response.pagination.total_pages == 10
        assert response.pagination.has_prev is True
