"""Search helpers built on top of the listing pipeline.

- :func:`suggestions` - popular tags, most viewed titles and the category list
- :func:`autocomplete` - distinct titles, tags and author names matching a prefix
- :func:`related_items` - trending items from the same category as a given item
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from mosaic.core.models import CATEGORIES, GalleryItem
from mosaic.core.query import QueryParams, query_items

MAX_SUGGESTED_TAGS = 10
MAX_SUGGESTED_TITLES = 5
MAX_AUTOCOMPLETE = 8
MIN_AUTOCOMPLETE_LENGTH = 2
DEFAULT_RELATED_LIMIT = 6


def suggestions(items: Sequence[GalleryItem]) -> dict[str, Any]:
    """Return search suggestions for an empty search box.

    Args:
        items: Repository snapshot in repository order.

    Returns:
        Dictionary with ``tags`` (first distinct tags seen), ``titles`` (titles
        of the most viewed items) and ``categories``.
    """
    tags: list[str] = []
    for item in items:
        for tag in item.tags:
            if tag not in tags:
                tags.append(tag)

    most_viewed = sorted(items, key=lambda item: item.views, reverse=True)

    return {
        "tags": tags[:MAX_SUGGESTED_TAGS],
        "titles": [item.title for item in most_viewed[:MAX_SUGGESTED_TITLES]],
        "categories": list(CATEGORIES),
    }


def autocomplete(items: Sequence[GalleryItem], query: str) -> list[str]:
    """Return distinct titles, tags and author names containing ``query``.

    Queries shorter than two characters return nothing.
    """
    query = (query or "").strip()
    if len(query) < MIN_AUTOCOMPLETE_LENGTH:
        return []

    needle = query.lower()
    found: list[str] = []

    def add(value: str) -> None:
        if needle in value.lower() and value not in found:
            found.append(value)

    for item in items:
        add(item.title)
        for tag in item.tags:
            add(tag)
        add(item.author.name)

    return found[:MAX_AUTOCOMPLETE]


def related_items(
    items: Sequence[GalleryItem],
    item: GalleryItem,
    limit: int = DEFAULT_RELATED_LIMIT,
    *,
    now: datetime | None = None,
) -> list[GalleryItem]:
    """Return trending items in ``item``'s category, excluding ``item`` itself.

    Args:
        items: Repository snapshot.
        item: The item being viewed.
        limit: Maximum number of related items.
        now: Reference time for trending scores.
    """
    # One extra slot so dropping ``item`` still leaves ``limit`` results.
    params = QueryParams(
        category=item.category,
        sort_by="trending",
        sort_order="desc",
        page=1,
        limit=limit + 1,
    )
    result = query_items(items, params, now=now)
    return [candidate for candidate in result.data if candidate.id != item.id][:limit]
