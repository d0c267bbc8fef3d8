"""Core gallery functionality.

- **models**: ``GalleryItem``, ``Author`` and the ``CATEGORIES`` list
- **query**: search, filter, sort and paginate pipeline plus trending score
- **repository**: thread-safe item store with memory and JSON backends
- **likes**: like ledger with memory and SQLite membership stores
- **creation**: validation and construction of new items
- **search**: suggestions, autocomplete and related items
- **config**: ``MosaicConfig`` settings loaded from ``MOSAIC_*`` variables
- **errors**: exception hierarchy mapped to API status codes

Usage Example
-------------
    from mosaic.core import ItemRepository, LikeLedger, QueryParams, query_items

    repository = ItemRepository()
    result = query_items(repository.get_all(), QueryParams(query="sunset"))
"""

from mosaic.core.config import MosaicConfig, config
from mosaic.core.errors import (
    DuplicateIdError,
    GalleryError,
    NotFoundError,
    RepositoryError,
    TransientFetchError,
    ValidationError,
)
from mosaic.core.likes import LikeLedger, LikeStatus
from mosaic.core.models import CATEGORIES, Author, GalleryItem
from mosaic.core.query import PageInfo, QueryParams, QueryResult, query_items, trending_score
from mosaic.core.repository import ItemRepository

__all__ = [
    "CATEGORIES",
    "Author",
    "DuplicateIdError",
    "GalleryError",
    "GalleryItem",
    "ItemRepository",
    "LikeLedger",
    "LikeStatus",
    "MosaicConfig",
    "NotFoundError",
    "PageInfo",
    "QueryParams",
    "QueryResult",
    "RepositoryError",
    "TransientFetchError",
    "ValidationError",
    "config",
    "query_items",
    "trending_score",
]
