"""Domain models for gallery items.

Items travel over the wire with camelCase keys (``imageUrl``, ``createdAt``)
while Python code uses snake_case attributes.  Both spellings are accepted on
input; :meth:`GalleryItem.to_wire` produces the camelCase form used by the API
and by the JSON storage backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CATEGORIES: tuple[str, ...] = (
    "Photography",
    "Digital Art",
    "UI/UX Design",
    "Illustration",
    "Architecture",
    "Fashion",
    "Nature",
    "Abstract",
    "Others",
)

SortBy = Literal["created", "trending", "likes", "views"]
SortOrder = Literal["asc", "desc"]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Author(CamelModel):
    """Author record embedded in each gallery item.

    Attributes:
        id: Author identifier.
        name: Display name, also matched by free-text search.
        avatar: Optional avatar URL.
    """

    id: str
    name: str
    avatar: str | None = None


class GalleryItem(CamelModel):
    """A single gallery entry.

    Attributes:
        id: Unique identifier, stable for the item's lifetime.
        title: Item title.
        description: Optional free-text description.
        image_url: Full-size image URL.
        thumbnail_url: Optional thumbnail URL.
        author: Embedded author record.
        tags: Lowercase tags, matched case-insensitively.
        category: One of :data:`CATEGORIES` (not enforced on every path).
        created_at: Creation timestamp; drives recency sorting and trending decay.
        updated_at: Last update timestamp.
        likes: Like counter, never negative.
        views: View counter, never negative.
    """

    id: str
    title: str
    description: str | None = None
    image_url: str
    thumbnail_url: str | None = None
    author: Author
    tags: list[str] = Field(default_factory=list)
    category: str
    created_at: datetime
    updated_at: datetime
    likes: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)

    def created_at_ms(self) -> float:
        """Return ``created_at`` as epoch milliseconds."""
        return _aware(self.created_at).timestamp() * 1000

    def to_wire(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON form."""
        return self.model_dump(mode="json", by_alias=True)


def _aware(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
