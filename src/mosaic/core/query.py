"""Gallery listing pipeline: search, filter, sort and paginate.

The listing pipeline is a pure function of a repository snapshot and a
:class:`QueryParams` value.  Steps always run in the same order:

1. free-text search over title, description, tags and author name
2. category filter (case-insensitive exact match, ``"all"`` disables it)
3. tag filter (any item tag containing any requested tag)
4. sort by ``created``, ``trending``, ``likes`` or ``views``
5. paginate

Pagination runs last so ``total`` and ``total_pages`` describe the filtered
set rather than the whole repository.

Sorting is stable.  Items with exactly equal sort keys keep their repository
order (newest-first), which is the only tie-break applied.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, get_args

from mosaic.core.errors import ValidationError
from mosaic.core.models import GalleryItem, SortBy, SortOrder, utcnow

DEFAULT_LIMIT = 12
MS_PER_DAY = 1000 * 60 * 60 * 24
TRENDING_DECAY_PER_DAY = 0.1


def parse_tags(raw: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalise a tag filter into trimmed, lowercase, non-empty tags.

    Args:
        raw: Comma-separated string (wire form) or an iterable of tags.

    Returns:
        Tuple of normalised tags in their original order.
    """
    if not raw:
        return ()
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(tag.strip().lower() for tag in raw if tag and tag.strip())


@dataclass(frozen=True)
class QueryParams:
    """Parameters accepted by the listing pipeline.

    Attributes:
        query: Free-text search, empty for none.
        category: Category filter; empty or ``"all"`` for none.
        tags: Tag filters, already normalised by :func:`parse_tags`.
        sort_by: Sort key.
        sort_order: ``"asc"`` or ``"desc"``.
        page: One-based page number.
        limit: Page size.
    """

    query: str = ""
    category: str = ""
    tags: tuple[str, ...] = ()
    sort_by: SortBy = "created"
    sort_order: SortOrder = "desc"
    page: int = 1
    limit: int = DEFAULT_LIMIT

    def validate(self) -> None:
        """Reject parameter values the pipeline cannot serve.

        Raises:
            ValidationError: For a non-positive page or limit, or an unknown
                sort key or order.
        """
        if self.page < 1:
            raise ValidationError(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise ValidationError(f"limit must be >= 1, got {self.limit}")
        if self.sort_by not in get_args(SortBy):
            raise ValidationError(f"Unknown sortBy: {self.sort_by}")
        if self.sort_order not in get_args(SortOrder):
            raise ValidationError(f"Unknown sortOrder: {self.sort_order}")

    def fingerprint(self) -> str:
        """Summarise every filter and sort parameter, ignoring page and limit.

        Two parameter sets with the same fingerprint describe the same
        ordered result list, so accumulated pages can be kept.
        """
        return "_".join(
            [self.query, self.category, ",".join(self.tags), self.sort_by, self.sort_order]
        )

    def with_page(self, page: int, limit: int | None = None) -> QueryParams:
        """Return a copy targeting another page."""
        return QueryParams(
            query=self.query,
            category=self.category,
            tags=self.tags,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            page=page,
            limit=self.limit if limit is None else limit,
        )

    def to_query_string_params(self) -> dict[str, Any]:
        """Return the wire parameters, omitting empty filters."""
        params: dict[str, Any] = {
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
            "page": self.page,
            "limit": self.limit,
        }
        if self.query:
            params["query"] = self.query
        if self.category:
            params["category"] = self.category
        if self.tags:
            params["tags"] = ",".join(self.tags)
        return params


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata for one page of a filtered result."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    def to_wire(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass
class QueryResult:
    """One page of items plus its pagination metadata."""

    data: list[GalleryItem] = field(default_factory=list)
    pagination: PageInfo = field(
        default_factory=lambda: PageInfo(1, DEFAULT_LIMIT, 0, 0, False, False)
    )

    def to_wire(self) -> dict[str, Any]:
        return {
            "data": [item.to_wire() for item in self.data],
            "pagination": self.pagination.to_wire(),
        }


def trending_score(item: GalleryItem, now: datetime | None = None) -> float:
    """Score an item by engagement, decayed by age.

    ``(likes * 2 + views) / (1 + days_since_created * 0.1)``

    Items dated in the future count as brand new, so the divisor never
    drops below one.

    Args:
        item: Item to score.
        now: Reference time; defaults to the current UTC time.

    Returns:
        Trending score; higher ranks first under descending order.
    """
    now = now or utcnow()
    now_ms = now.timestamp() * 1000
    days_since_created = max(0.0, (now_ms - item.created_at_ms()) / MS_PER_DAY)
    return (item.likes * 2 + item.views) / (1 + days_since_created * TRENDING_DECAY_PER_DAY)


def matches_text(item: GalleryItem, text: str) -> bool:
    """Case-insensitive substring match over title, description, tags and author."""
    needle = text.lower()
    return (
        needle in item.title.lower()
        or needle in (item.description or "").lower()
        or any(needle in tag.lower() for tag in item.tags)
        or needle in item.author.name.lower()
    )


def matches_tags(item: GalleryItem, tags: Sequence[str]) -> bool:
    """Return True if any item tag contains any of ``tags`` (case-insensitive)."""
    item_tags = [tag.lower() for tag in item.tags]
    return any(wanted in item_tag for wanted in tags for item_tag in item_tags)


def filter_items(items: Iterable[GalleryItem], params: QueryParams) -> list[GalleryItem]:
    """Apply text, category and tag filters in that order.

    Args:
        items: Source items in repository order.
        params: Query parameters.

    Returns:
        Filtered items in their original order.
    """
    filtered = list(items)

    if params.query:
        filtered = [item for item in filtered if matches_text(item, params.query)]

    if params.category and params.category.lower() != "all":
        category = params.category.lower()
        filtered = [item for item in filtered if item.category.lower() == category]

    if params.tags:
        filtered = [item for item in filtered if matches_tags(item, params.tags)]

    return filtered


def sort_key(sort_by: SortBy, now: datetime | None = None) -> Callable[[GalleryItem], float]:
    """Return the numeric sort key function for ``sort_by``."""
    if sort_by == "likes":
        return lambda item: item.likes
    if sort_by == "views":
        return lambda item: item.views
    if sort_by == "trending":
        reference = now or utcnow()
        return lambda item: trending_score(item, reference)
    return GalleryItem.created_at_ms


def sort_items(
    items: Iterable[GalleryItem],
    sort_by: SortBy = "created",
    sort_order: SortOrder = "desc",
    *,
    now: datetime | None = None,
) -> list[GalleryItem]:
    """Sort items by the requested key and order (stable)."""
    return sorted(items, key=sort_key(sort_by, now), reverse=sort_order == "desc")


def paginate_items(
    items: Sequence[GalleryItem], page: int, limit: int
) -> tuple[list[GalleryItem], PageInfo]:
    """Slice one page out of ``items`` and compute its metadata.

    A page past the end yields an empty slice; it is not clamped.

    Args:
        items: Filtered and sorted items.
        page: One-based page number (must be >= 1).
        limit: Page size (must be >= 1).

    Returns:
        Tuple of ``(page_items, page_info)``.
    """
    total = len(items)
    total_pages = math.ceil(total / limit)
    start = (page - 1) * limit
    end = start + limit

    info = PageInfo(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
    return list(items[start:end]), info


def query_items(
    items: Iterable[GalleryItem],
    params: QueryParams,
    *,
    now: datetime | None = None,
) -> QueryResult:
    """Run the full listing pipeline over a repository snapshot.

    Args:
        items: Repository snapshot; never mutated.
        params: Query parameters.
        now: Reference time for trending scores (defaults to now).

    Returns:
        The requested page and its pagination metadata.

    Raises:
        ValidationError: If ``params`` fails :meth:`QueryParams.validate`.
    """
    params.validate()
    filtered = filter_items(items, params)
    ordered = sort_items(filtered, params.sort_by, params.sort_order, now=now)
    data, info = paginate_items(ordered, params.page, params.limit)
    return QueryResult(data=data, pagination=info)
