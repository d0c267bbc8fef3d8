"""Pydantic request models for the Mosaic API.

FastAPI uses these models for request parsing and OpenAPI documentation.
Fields use camelCase on the wire and snake_case in Python.

Required create fields are declared optional on purpose: a missing
``title``, ``imageUrl`` or ``category`` must surface as the creation
pipeline's 400 ``Missing required fields`` answer rather than a schema 422.

Models
------
CreateItemRequest
    Payload for ``POST /api/items``.
LikeRequest
    Payload for ``POST /api/likes``.
"""

from __future__ import annotations

from pydantic import Field

from mosaic.core.creation import NewItem
from mosaic.core.models import CamelModel


class CreateItemRequest(CamelModel):
    """Request body for the ``POST /api/items`` endpoint.

    Attributes:
        title: Item title (required).
        description: Optional description.
        image_url: Image URL (required).
        tags: Tags; normalised by the creation pipeline.
        category: Category name (required).
    """

    title: str | None = Field(default=None, description="Item title (required).")
    description: str | None = Field(default=None, description="Optional description.")
    image_url: str | None = Field(default=None, description="Image URL (required).")
    tags: list[str] = Field(default_factory=list, description="Tags, at most 10 are kept.")
    category: str | None = Field(default=None, description="Category name (required).")

    def to_new_item(self) -> NewItem:
        return NewItem(
            title=self.title,
            image_url=self.image_url,
            category=self.category,
            description=self.description,
            tags=list(self.tags),
        )


class LikeRequest(CamelModel):
    """Request body for the ``POST /api/likes`` endpoint.

    Attributes:
        item_id: Id of the item whose like state is toggled.
    """

    item_id: str | None = Field(default=None, description="Id of the item to like or unlike.")
