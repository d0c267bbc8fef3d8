"""HTTP page fetcher for :class:`~mosaic.client.feed.GalleryFeed`.

Talks to ``GET /api/items`` on a running Mosaic server with an
``httpx.AsyncClient``.  Every transport failure, non-2xx status or malformed
body is raised as :class:`~mosaic.core.errors.TransientFetchError` so the feed
can keep its accumulated items and wait for a user-triggered retry.

Usage
-----
::

    async with HttpPageFetcher("http://localhost:8000") as fetcher:
        feed = GalleryFeed(fetcher, QueryParams(category="Nature"))
        await feed.start()
        while feed.has_next:
            await feed.load_more()
"""

from __future__ import annotations

import logging

import httpx

from mosaic.client.feed import PageResponse
from mosaic.core.errors import TransientFetchError
from mosaic.core.query import QueryParams

logger = logging.getLogger(__name__)

ITEMS_PATH = "/api/items"
DEFAULT_TIMEOUT = 10.0


class HttpPageFetcher:
    """Fetch listing pages over HTTP.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.  Ignored when
            ``client`` is given.
        client: Pre-built client (its ``base_url`` is used); it is not closed
            by :meth:`aclose`.
        timeout: Request timeout in seconds for the client built here.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __call__(self, params: QueryParams) -> PageResponse:
        """Fetch the page described by ``params``.

        Raises:
            TransientFetchError: On network errors, non-2xx responses or a
                body that is not a listing page.
        """
        query = params.to_query_string_params()
        try:
            response = await self._client.get(ITEMS_PATH, params=query)
            response.raise_for_status()
            return PageResponse.from_wire(response.json())
        except httpx.HTTPError as e:
            logger.warning(f"GET {ITEMS_PATH} {query} failed: {e}")
            raise TransientFetchError(f"Could not load page {params.page}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"GET {ITEMS_PATH} {query} returned an unexpected body: {e}")
            raise TransientFetchError(f"Malformed response for page {params.page}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpPageFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
