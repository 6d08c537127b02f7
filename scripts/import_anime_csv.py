"""
Import the anime spreadsheet (exported as CSV) into the anime table.

Expected columns: title,status,total_seasons,seasons_watched,favorite,tags,notes
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.anime_csv import import_anime, read_anime_csv
from portfolio.db import BackendError
from portfolio.dependencies import get_db_client
from portfolio.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Import anime rows from a CSV export")
    parser.add_argument("csv_path", type=Path, help="Path to the CSV file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and count rows without writing to the database",
    )
    args = parser.parse_args()

    configure_logging("INFO")
    try:
        with args.csv_path.open(newline="", encoding="utf-8-sig") as handle:
            rows = read_anime_csv(handle)
    except (OSError, ValueError) as exc:
        logger.error("Could not read %s: %s", args.csv_path, exc)
        return 1

    try:
        count = import_anime(get_db_client(), rows, dry_run=args.dry_run)
    except BackendError as exc:
        logger.error("Import failed: %s", exc)
        return 1

    verb = "Would import" if args.dry_run else "Imported"
    logger.info("%s %d anime rows", verb, count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
