"""Infinite-scroll accumulator for paginated gallery listings.

:class:`GalleryFeed` drives repeated listing requests (page 1, 2, 3, ...) and
merges the pages into one ordered list.

State machine
-------------
``idle`` -> ``loading_initial`` -> ``loaded`` | ``error``
``loaded`` -> ``loading_more`` -> ``loaded`` | ``error``

- Changing any filter or sort parameter (the *fingerprint*) resets the feed
  to page 1 with no items and reloads.
- :meth:`GalleryFeed.refresh` does the same and also drops the cached page 1
  so the reload reaches the server.
- Page 1 replaces the item list wholesale; later pages append only ids not
  already present.  An item created between two page fetches shifts every
  later item down one slot, so consecutive pages can overlap by one item.
- A fetch that completes after a reset is discarded.
- A failed or cancelled "load more" keeps every accumulated item;
  :meth:`GalleryFeed.retry` re-requests the page that failed.  Nothing
  retries automatically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mosaic.core.errors import TransientFetchError
from mosaic.core.models import GalleryItem
from mosaic.core.query import PageInfo, QueryParams, query_items
from mosaic.core.repository import ItemRepository

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 5.0


class FeedStatus(str, Enum):
    """Lifecycle states of a :class:`GalleryFeed`."""

    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    LOADING_MORE = "loading_more"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class PageResponse:
    """One listing page as returned by the server."""

    data: list[GalleryItem] = field(default_factory=list)
    pagination: PageInfo = field(default_factory=lambda: PageInfo(1, 12, 0, 0, False, False))

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> PageResponse:
        """Parse the ``{data, pagination}`` JSON body of ``GET /api/items``."""
        meta = payload["pagination"]
        return cls(
            data=[GalleryItem.model_validate(entry) for entry in payload["data"]],
            pagination=PageInfo(
                page=meta["page"],
                limit=meta["limit"],
                total=meta["total"],
                total_pages=meta["totalPages"],
                has_next=meta["hasNext"],
                has_prev=meta["hasPrev"],
            ),
        )


PageFetcher = Callable[[QueryParams], Awaitable[PageResponse]]


class PageCache:
    """Short-lived cache of fetched pages keyed by fingerprint, page and limit.

    Repeated requests for the same page inside ``ttl`` seconds are served
    from memory, which keeps quick re-renders from hitting the server.

    Args:
        ttl: Seconds a cached page stays valid.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[str, int, int], tuple[float, PageResponse]] = {}

    @staticmethod
    def _key(params: QueryParams) -> tuple[str, int, int]:
        return params.fingerprint(), params.page, params.limit

    def get(self, params: QueryParams) -> PageResponse | None:
        entry = self._entries.get(self._key(params))
        if entry is None:
            return None
        stored_at, response = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[self._key(params)]
            return None
        return response

    def put(self, params: QueryParams, response: PageResponse) -> None:
        self._entries[self._key(params)] = (self._clock(), response)

    def invalidate(self, fingerprint: str, page: int | None = None) -> int:
        """Drop cached pages for ``fingerprint`` (one page, or all of them).

        Returns:
            Number of entries removed.
        """
        doomed = [
            key
            for key in self._entries
            if key[0] == fingerprint and (page is None or key[1] == page)
        ]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()


def local_fetcher(repository: ItemRepository) -> PageFetcher:
    """Build a fetcher that queries a repository in-process, without HTTP."""

    async def fetch(params: QueryParams) -> PageResponse:
        result = query_items(repository.get_all(), params)
        return PageResponse(data=result.data, pagination=result.pagination)

    return fetch


class GalleryFeed:
    """Accumulate listing pages into one de-duplicated, ordered list.

    Args:
        fetch_page: Async callable returning the page described by its
            :class:`QueryParams` argument.  Failures must be raised as
            :class:`TransientFetchError`.
        params: Initial filter and sort parameters; ``page`` is ignored.
        cache: Page cache; pass ``None`` to use a fresh :class:`PageCache`.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        params: QueryParams | None = None,
        *,
        cache: PageCache | None = None,
    ):
        self._fetch_page = fetch_page
        self._params = (params or QueryParams()).with_page(1)
        self._cache = cache if cache is not None else PageCache()
        self._generation = 0
        self._items: list[GalleryItem] = []
        self._seen_ids: set[str] = set()
        self._page = 0
        self._has_next = False
        self._total = 0
        self._status = FeedStatus.IDLE
        self._error: Exception | None = None
        self._in_flight = False

    # -- properties --------------------------------------------------------

    @property
    def items(self) -> list[GalleryItem]:
        return list(self._items)

    @property
    def params(self) -> QueryParams:
        return self._params

    @property
    def fingerprint(self) -> str:
        return self._params.fingerprint()

    @property
    def page(self) -> int:
        """Last page successfully merged (0 before the first load)."""
        return self._page

    @property
    def has_next(self) -> bool:
        return self._has_next

    @property
    def total(self) -> int:
        return self._total

    @property
    def status(self) -> FeedStatus:
        return self._status

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._in_flight

    @property
    def is_complete(self) -> bool:
        """True once every page for the current fingerprint has been merged."""
        return self._status == FeedStatus.LOADED and not self._has_next

    # -- public API --------------------------------------------------------

    async def start(self) -> None:
        """Load page 1 for the current parameters, discarding any state."""
        self._reset()
        await self._load_initial()

    async def set_params(self, params: QueryParams) -> bool:
        """Switch to new filter/sort parameters.

        Returns:
            True if the fingerprint or page size changed and the feed reloaded.
        """
        new_params = params.with_page(1)
        if (
            new_params.fingerprint() == self.fingerprint
            and new_params.limit == self._params.limit
            and self._status != FeedStatus.IDLE
        ):
            return False
        logger.debug(f"Feed parameters changed to {new_params.fingerprint()!r}")
        self._params = new_params
        self._reset()
        await self._load_initial()
        return True

    async def refresh(self) -> None:
        """Force a reload from page 1, bypassing the cached first page."""
        self._reset()
        self._cache.invalidate(self.fingerprint, page=1)
        await self._load_initial()

    async def load_more(self) -> bool:
        """Fetch and merge the next page.

        Ignored unless the feed is loaded, more pages exist and no fetch is
        in flight.

        Returns:
            True if a page was merged.
        """
        if self._in_flight or self._status != FeedStatus.LOADED or not self._has_next:
            return False
        return await self._load_next()

    async def retry(self) -> bool:
        """Repeat the request that left the feed in the ``error`` state.

        Returns:
            True if the retried request succeeded.
        """
        if self._status != FeedStatus.ERROR or self._in_flight:
            return False
        if self._page == 0:
            return await self._load_initial()
        return await self._load_next()

    # -- internal ----------------------------------------------------------

    def _reset(self) -> None:
        # Bumping the generation orphans any request still in flight.
        self._generation += 1
        self._items = []
        self._seen_ids = set()
        self._page = 0
        self._has_next = False
        self._total = 0
        self._status = FeedStatus.IDLE
        self._error = None
        self._in_flight = False

    async def _fetch(self, page: int) -> PageResponse:
        params = self._params.with_page(page)
        cached = self._cache.get(params)
        if cached is not None:
            return cached
        response = await self._fetch_page(params)
        self._cache.put(params, response)
        return response

    async def _request(self, page: int, status: FeedStatus) -> PageResponse | None:
        """Fetch ``page``; None if it failed or was made stale by a reset."""
        generation = self._generation
        self._status = status
        self._in_flight = True
        self._error = None

        try:
            response = await self._fetch(page)
        except asyncio.CancelledError:
            # A cancelled fetch must not leave the feed stuck in flight.
            if generation == self._generation:
                self._in_flight = False
                self._status = FeedStatus.ERROR
                self._error = TransientFetchError(f"Fetching page {page} was cancelled")
            logger.info(f"Fetching page {page} of {self.fingerprint!r} was cancelled")
            raise
        except Exception as e:
            if generation == self._generation:
                self._in_flight = False
                self._status = FeedStatus.ERROR
                self._error = e
            if not isinstance(e, TransientFetchError):
                raise
            logger.warning(f"Fetching page {page} of {self.fingerprint!r} failed: {e}")
            return None

        if generation != self._generation:
            logger.debug(f"Discarding stale page {page} response")
            return None

        self._in_flight = False
        return response

    async def _load_initial(self) -> bool:
        response = await self._request(1, FeedStatus.LOADING_INITIAL)
        if response is None:
            return False
        self._items = list(response.data)
        self._seen_ids = {item.id for item in self._items}
        self._apply(response, 1)
        return True

    async def _load_next(self) -> bool:
        page = self._page + 1
        response = await self._request(page, FeedStatus.LOADING_MORE)
        if response is None:
            return False
        fresh = [item for item in response.data if item.id not in self._seen_ids]
        self._items.extend(fresh)
        self._seen_ids.update(item.id for item in fresh)
        self._apply(response, page)
        skipped = len(response.data) - len(fresh)
        if skipped:
            logger.debug(f"Skipped {skipped} duplicate items on page {self._page}")
        return True

    def _apply(self, response: PageResponse, page: int) -> None:
        self._page = page
        self._has_next = response.pagination.has_next
        self._total = response.pagination.total
        self._status = FeedStatus.LOADED
