"""
Normalisation and presentation helpers shared by the page and admin routes.

Rows come back from the hosted tables with nullable columns; everything the
templates see goes through these helpers so defaults are applied in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from portfolio.db import AnimeRecord, PhotoRecord
from portfolio.storage import media_public_url

STATUS_OPTIONS = ["watching", "watched", "planned", "on-hold", "dropped"]
DEFAULT_STATUS = "planned"
DEFAULT_SORT_ORDER = 9999

PHOTO_CATEGORIES = [
    ("food", "Food"),
    ("car", "Cars"),
    ("anime", "Anime"),
    ("business", "Business / Projects"),
]
PHOTO_CATEGORY_VALUES = [value for value, _ in PHOTO_CATEGORIES]

ANIME_SECTIONS = [
    ("watching", "Currently watching", "Shows I'm actively working through."),
    ("planned", "Planned", "On the radar, just not started yet."),
    ("watched", "Completed", "Finished shows."),
]
OTHER_SECTION = (
    "other",
    "Other",
    "On-hold, dropped, or anything that doesn't fit neatly above.",
)


def parse_tags(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def join_tags(tags: Optional[Iterable[str]], sep: str = ", ") -> str:
    return sep.join(tags or [])


def clean_tags(tags: Optional[Iterable[str]]) -> list[str]:
    return [tag.strip() for tag in (tags or []) if tag and tag.strip()]


@dataclass
class AnimeView:
    id: str
    title: str
    favorite: bool
    status: str
    total_seasons: int
    seasons_watched: int
    notes: Optional[str]
    tags: list[str]
    likes: int
    views: int
    sort_order: int
    cover_url: Optional[str]

    @classmethod
    def from_record(cls, record: AnimeRecord) -> "AnimeView":
        return cls(
            id=record.id,
            title=record.title,
            favorite=bool(record.is_favorite),
            status=record.status or DEFAULT_STATUS,
            total_seasons=record.total_seasons if record.total_seasons is not None else 1,
            seasons_watched=record.seasons_watched or 0,
            notes=record.notes,
            tags=clean_tags(record.tags),
            likes=record.likes or 0,
            views=record.views or 0,
            sort_order=record.sort_order if record.sort_order is not None else DEFAULT_SORT_ORDER,
            cover_url=record.cover_url or None,
        )


def sort_anime(rows: Iterable[AnimeView]) -> list[AnimeView]:
    return sorted(rows, key=lambda row: (row.sort_order, row.title.casefold()))


def normalise_anime(records: Iterable[AnimeRecord]) -> list[AnimeView]:
    return sort_anime(AnimeView.from_record(record) for record in records)


@dataclass
class AnimeSection:
    key: str
    title: str
    subtitle: str
    rows: list[AnimeView] = field(default_factory=list)


def group_anime(rows: Sequence[AnimeView]) -> list[AnimeSection]:
    """Split an already sorted list into the page sections, dropping empty ones."""
    known = {key for key, _, _ in ANIME_SECTIONS}
    sections = [
        AnimeSection(key, title, subtitle, [row for row in rows if row.status == key])
        for key, title, subtitle in ANIME_SECTIONS
    ]
    key, title, subtitle = OTHER_SECTION
    sections.append(
        AnimeSection(key, title, subtitle, [row for row in rows if row.status not in known])
    )
    return [section for section in sections if section.rows]


def format_status(row: AnimeView) -> str:
    if row.total_seasons > 0:
        plural = "" if row.total_seasons == 1 else "s"
        return (
            f"{row.status} • {row.seasons_watched} of {row.total_seasons} season{plural}"
        )
    return row.status


def next_sort_order(rows: Iterable[AnimeRecord]) -> int:
    orders = [row.sort_order for row in rows if row.sort_order is not None]
    return (max(orders) if orders else 0) + 1


@dataclass
class GalleryItem:
    id: int | str
    title: str
    image_url: str
    subtitle: str = ""
    tags: list[str] = field(default_factory=list)
    likes: int = 0
    views: int = 0
    trackable: bool = True

    @classmethod
    def from_photo(cls, photo: PhotoRecord, base_url: str, bucket: str = "media") -> "GalleryItem":
        return cls(
            id=photo.id,
            title=photo.title or "Untitled photo",
            subtitle=photo.description or "",
            image_url=media_public_url(photo.image_path, base_url, bucket),
            tags=clean_tags(photo.tags),
            likes=photo.likes or 0,
            views=photo.views or 0,
        )


def _placeholder(id, title, subtitle, image_url, tags) -> GalleryItem:
    # Placeholders have no row behind them, so no counters are tracked.
    return GalleryItem(
        id=id, title=title, subtitle=subtitle, image_url=image_url, tags=tags, trackable=False
    )


FALLBACK_FOOD = [
    _placeholder(
        1,
        "Miso Salmon & Broccoli",
        "Gym-day dinner, high protein, low effort.",
        "/static/placeholder.svg",
        ["salmon", "broccoli", "dinner"],
    ),
    _placeholder(
        2,
        "Steak & Potatoes",
        "Weeknight experiment with a new pan.",
        "/static/placeholder.svg",
        ["steak", "comfort"],
    ),
    _placeholder(
        3,
        "Shrimp & Rice Bowl",
        "Sunday meal prep, camera loved it.",
        "/static/placeholder.svg",
        ["shrimp", "meal prep"],
    ),
]

FALLBACK_CARS = [
    _placeholder(
        1,
        "2024 GR Corolla Circuit Edition",
        "Blue Ice – current daily and track toy.",
        "/static/placeholder.svg",
        ["gr corolla", "circuit edition", "2024"],
    ),
    _placeholder(
        2,
        "2019 Civic Type R",
        "Black, turbo, and a very good time.",
        "/static/placeholder.svg",
        ["civic type r", "2019"],
    ),
    _placeholder(
        3,
        "1993 Civic Hatchback",
        "Fully modified, white, and very loud.",
        "/static/placeholder.svg",
        ["civic", "hatchback", "1993"],
    ),
]

ANIME_PREVIEW_IMAGES = [
    "/static/placeholder.svg",
    "/static/placeholder.svg",
    "/static/placeholder.svg",
]

BUSINESS_THREADS = [
    {
        "id": "biz-1",
        "title": "Early thoughts on Kiori Solutions",
        "category": "Business",
        "comment_count": 3,
        "created_at": "Sep 2025",
    },
]
