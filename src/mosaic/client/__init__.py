"""Client-side helpers for consuming the Mosaic listing API.

Modules
-------
feed
    ``GalleryFeed`` infinite-scroll accumulator, ``PageCache`` and the
    in-process ``local_fetcher``.
http
    ``HttpPageFetcher`` for talking to a running server with httpx.
"""

from mosaic.client.feed import FeedStatus, GalleryFeed, PageCache, PageResponse, local_fetcher
from mosaic.client.http import HttpPageFetcher

__all__ = [
    "FeedStatus",
    "GalleryFeed",
    "HttpPageFetcher",
    "PageCache",
    "PageResponse",
    "local_fetcher",
]
