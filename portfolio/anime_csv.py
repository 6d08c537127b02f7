"""
Parsing for the anime spreadsheet export used to seed the ``anime`` table.
"""

from __future__ import annotations

import csv
import logging
import re
from typing import Iterable, Optional, TextIO

from portfolio.db import DbClient
from portfolio.gallery import DEFAULT_STATUS, STATUS_OPTIONS, next_sort_order

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "title",
    "status",
    "total_seasons",
    "seasons_watched",
    "favorite",
    "tags",
    "notes",
)
TRUTHY = {"1", "true", "yes", "y", "x", "★", "*"}


def _int(value: Optional[str], default: int) -> int:
    try:
        return int((value or "").strip())
    except ValueError:
        return default


def split_tags(value: Optional[str]) -> list[str]:
    return [tag.strip() for tag in re.split(r"[;,]", value or "") if tag.strip()]


def parse_row(row: dict) -> Optional[dict]:
    """Map one CSV row to ``anime`` column values; rows without a title are skipped."""
    title = (row.get("title") or "").strip()
    if not title:
        return None
    status = (row.get("status") or "").strip().lower() or DEFAULT_STATUS
    if status not in STATUS_OPTIONS:
        logger.warning("[import] unknown status %r for %s, using %s", status, title, DEFAULT_STATUS)
        status = DEFAULT_STATUS
    total = max(1, _int(row.get("total_seasons"), 1))
    return {
        "title": title,
        "status": status,
        "total_seasons": total,
        "seasons_watched": max(0, _int(row.get("seasons_watched"), 0)),
        "is_favorite": (row.get("favorite") or "").strip().lower() in TRUTHY,
        "tags": split_tags(row.get("tags")),
        "notes": (row.get("notes") or "").strip() or None,
        "likes": 0,
        "views": 0,
    }


def read_anime_csv(handle: TextIO) -> list[dict]:
    reader = csv.DictReader(handle)
    if "title" not in (reader.fieldnames or []):
        raise ValueError("CSV is missing the title column")
    rows = []
    for row in reader:
        values = parse_row(row)
        if values is not None:
            rows.append(values)
    return rows


def import_anime(db: DbClient, rows: Iterable[dict], *, dry_run: bool = False) -> int:
    """
    Insert parsed rows in file order, numbering sort_order after the current
    maximum so imported titles land at the end of the list.
    """
    sort_order = next_sort_order(db.list_anime())
    count = 0
    for values in rows:
        if not dry_run:
            db.create_anime(dict(values, sort_order=sort_order))
        sort_order += 1
        count += 1
    return count
