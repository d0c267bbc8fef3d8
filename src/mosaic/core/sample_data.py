"""Sample catalogue installed when a repository starts out empty.

Five hand-written showcase items are followed by generated filler items so
that pagination has several pages to walk through.  Generation is seeded, so
the same ``count`` and ``seed`` always produce the same catalogue.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from mosaic.core.models import Author, GalleryItem

SHOWCASE_ITEMS: list[dict] = [
    {
        "id": "1",
        "title": "Sunset Over Mountains",
        "description": "A breathtaking view of the sunset over the mountain range, "
        "captured during golden hour.",
        "imageUrl": "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=800&h=600&fit=crop",
        "thumbnailUrl": "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=300&h=200&fit=crop",
        "author": {"id": "user1", "name": "Alex Photography"},
        "tags": ["nature", "sunset", "mountains", "landscape"],
        "category": "Photography",
        "createdAt": "2024-01-15T08:30:00Z",
        "updatedAt": "2024-01-15T08:30:00Z",
        "likes": 245,
        "views": 1250,
    },
    {
        "id": "2",
        "title": "Modern UI Design",
        "description": "Clean and minimal user interface design for a mobile banking app.",
        "imageUrl": "https://images.unsplash.com/photo-1551650975-87deedd944c3?w=800&h=600&fit=crop",
        "thumbnailUrl": "https://images.unsplash.com/photo-1551650975-87deedd944c3?w=300&h=200&fit=crop",
        "author": {"id": "user2", "name": "Sarah Designer"},
        "tags": ["ui", "mobile", "banking", "design"],
        "category": "UI/UX Design",
        "createdAt": "2024-01-14T14:20:00Z",
        "updatedAt": "2024-01-14T14:20:00Z",
        "likes": 189,
        "views": 890,
    },
    {
        "id": "3",
        "title": "Abstract Digital Art",
        "description": "Colorful abstract composition created with digital painting techniques.",
        "imageUrl": "https://images.unsplash.com/photo-1549317336-206569e8475c?w=800&h=600&fit=crop",
        "thumbnailUrl": "https://images.unsplash.com/photo-1549317336-206569e8475c?w=300&h=200&fit=crop",
        "author": {"id": "user3", "name": "Mike Artist"},
        "tags": ["abstract", "digital", "colorful", "art"],
        "category": "Digital Art",
        "createdAt": "2024-01-13T10:45:00Z",
        "updatedAt": "2024-01-13T10:45:00Z",
        "likes": 156,
        "views": 670,
    },
    {
        "id": "4",
        "title": "City Architecture",
        "description": "Modern skyscrapers reaching towards the sky in downtown area.",
        "imageUrl": "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=800&h=600&fit=crop",
        "thumbnailUrl": "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=300&h=200&fit=crop",
        "author": {"id": "user4", "name": "Emma Architecture"},
        "tags": ["architecture", "city", "buildings", "urban"],
        "category": "Architecture",
        "createdAt": "2024-01-12T16:15:00Z",
        "updatedAt": "2024-01-12T16:15:00Z",
        "likes": 278,
        "views": 1450,
    },
    {
        "id": "5",
        "title": "Fashion Portrait",
        "description": "Elegant fashion photography with dramatic lighting and styling.",
        "imageUrl": "https://images.unsplash.com/photo-1469334031218-e382a71b716b?w=800&h=600&fit=crop",
        "thumbnailUrl": "https://images.unsplash.com/photo-1469334031218-e382a71b716b?w=300&h=200&fit=crop",
        "author": {"id": "user5", "name": "James Fashion"},
        "tags": ["fashion", "portrait", "model", "photography"],
        "category": "Fashion",
        "createdAt": "2024-01-11T11:30:00Z",
        "updatedAt": "2024-01-11T11:30:00Z",
        "likes": 312,
        "views": 1680,
    },
]

_TITLES = [
    "Ethereal Dreams", "Urban Symphony", "Digital Horizon", "Mystic Waters",
    "Golden Reflection", "Neon Nights", "Vintage Memories", "Crystal Vision",
    "Ocean Breeze", "Mountain Echo", "Starlight Serenade", "Forest Whispers",
    "Desert Mirage", "City Pulse", "Lunar Dance", "Rainbow Cascade",
    "Silent Valley", "Burning Sky", "Frozen Time", "Electric Soul",
]

_ARTISTS = [
    "Elena Rodriguez", "Marcus Chen", "Sophie Turner", "David Kim",
    "Isabella Moore", "Ryan Thompson", "Aria Patel", "Lucas Anderson",
    "Maya Williams", "Noah Davis", "Chloe Johnson", "Ethan Brown",
]

_DESCRIPTIONS = [
    "A stunning masterpiece that captures the essence of modern creativity.",
    "Beautifully crafted with attention to every detail and vibrant colors.",
    "An inspiring work that blends traditional techniques with contemporary vision.",
    "A captivating piece that tells a story through visual excellence.",
    "Thoughtfully composed with beautiful lighting and dynamic elements.",
]

# Filler items never use "Others".
_FILLER_CATEGORIES = [
    "Photography", "Digital Art", "UI/UX Design", "Illustration",
    "Architecture", "Fashion", "Nature", "Abstract",
]


def sample_items(
    count: int = 50, *, seed: int = 7, now: datetime | None = None
) -> list[GalleryItem]:
    """Build the sample catalogue, newest first.

    Args:
        count: Total number of items including the five showcase items.
        seed: Random seed for the filler items.
        now: Reference time; filler items are created within 30 days of it.

    Returns:
        Items sorted by ``created_at`` descending.
    """
    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)

    items = [GalleryItem.model_validate(entry) for entry in SHOWCASE_ITEMS[:count]]

    for i in range(len(items) + 1, count + 1):
        created = now - timedelta(days=rng.uniform(0, 30))
        items.append(
            GalleryItem(
                id=str(i),
                title=rng.choice(_TITLES),
                description=rng.choice(_DESCRIPTIONS),
                image_url=f"https://picsum.photos/id/{i + 100}/800/600",
                thumbnail_url=f"https://picsum.photos/id/{i + 100}/300/200",
                author=Author(
                    id=f"user{i}",
                    name=rng.choice(_ARTISTS),
                    avatar=f"https://i.pravatar.cc/100?img={i}",
                ),
                tags=["creative", "art", "design", f"tag{i}"],
                category=rng.choice(_FILLER_CATEGORIES),
                created_at=created,
                updated_at=created,
                likes=rng.randrange(500),
                views=rng.randrange(2000),
            )
        )

    items.sort(key=GalleryItem.created_at_ms, reverse=True)
    return items
