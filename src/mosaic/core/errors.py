"""Exception hierarchy shared by the gallery core, API and client.

Every error raised deliberately by Mosaic derives from :class:`GalleryError`
so the API layer can convert them into structured failure responses with a
single set of exception handlers.  The ``status_code`` attribute carries the
HTTP status the API should answer with.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for all Mosaic errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GalleryError):
    """User input failed validation.

    The message is intended to be displayed directly to the caller.
    """

    status_code = 400


class NotFoundError(GalleryError):
    """An item id did not resolve to a stored gallery item."""

    status_code = 404

    def __init__(self, item_id: str, message: str = "Item not found"):
        super().__init__(message)
        self.item_id = item_id


class RepositoryError(GalleryError):
    """Internal inconsistency in the item repository."""

    status_code = 500


class DuplicateIdError(RepositoryError):
    """An item with the same id already exists in the repository."""

    def __init__(self, item_id: str):
        super().__init__(f"Duplicate item id: {item_id}")
        self.item_id = item_id


class TransientFetchError(GalleryError):
    """A page fetch failed on the client side (network or server failure).

    Already accumulated items are kept; the caller decides when to retry.
    """

    status_code = 503
