"""Creation pipeline for new gallery items.

Turns a create request into a stored :class:`GalleryItem`:

1. reject requests missing ``title``, ``imageUrl`` or ``category``
2. normalise tags (trim, lowercase, drop blanks and repeats, keep at most 10)
3. allocate an id from the repository and stamp timestamps and zero counters
4. prepend the item to the repository

Nothing is inserted when validation fails.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from mosaic.core.errors import ValidationError
from mosaic.core.models import Author, GalleryItem, utcnow
from mosaic.core.repository import ItemRepository

logger = logging.getLogger(__name__)

MAX_TAGS = 10

# No authentication exists, so every new item belongs to the same author.
CURRENT_USER = Author(id="current-user", name="Current User")


@dataclass
class NewItem:
    """Fields supplied by the caller when creating an item."""

    title: str | None
    image_url: str | None
    category: str | None
    description: str | None = None
    tags: list[str] = field(default_factory=list)


def normalize_tags(tags: Iterable[str] | None, limit: int = MAX_TAGS) -> list[str]:
    """Trim, lowercase and de-duplicate tags, keeping first-seen order.

    Args:
        tags: Raw tags; entries may contain commas, which split further.
        limit: Maximum number of tags kept.

    Returns:
        Normalised tag list.
    """
    result: list[str] = []
    for raw in tags or []:
        for part in str(raw).split(","):
            tag = part.strip().lower()
            if tag and tag not in result:
                result.append(tag)
    return result[:limit]


def validate_new_item(new_item: NewItem) -> None:
    """Check that every required field is present and non-blank.

    Raises:
        ValidationError: Naming the missing fields.
    """
    missing = [
        name
        for name, value in (
            ("title", new_item.title),
            ("imageUrl", new_item.image_url),
            ("category", new_item.category),
        )
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def create_item(repository: ItemRepository, new_item: NewItem) -> GalleryItem:
    """Validate, build and insert a new gallery item.

    Args:
        repository: Target repository; also allocates the id.
        new_item: Caller-supplied fields.

    Returns:
        The stored item, with server-assigned id, timestamps and counters.

    Raises:
        ValidationError: If a required field is missing.
        DuplicateIdError: If the allocated id is somehow already taken.
    """
    validate_new_item(new_item)

    now = utcnow()
    image_url = new_item.image_url.strip()
    with repository.lock:
        item = GalleryItem(
            id=repository.next_id(),
            title=new_item.title.strip(),
            description=(new_item.description or "").strip(),
            image_url=image_url,
            thumbnail_url=image_url,
            author=CURRENT_USER.model_copy(),
            tags=normalize_tags(new_item.tags),
            category=new_item.category.strip(),
            created_at=now,
            updated_at=now,
            likes=0,
            views=0,
        )
        stored = repository.insert(item)

    logger.info(f"Created item {stored.id!r}: {stored.title!r} in {stored.category}")
    return stored
