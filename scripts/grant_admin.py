"""
Add or remove a user id in the admins allowlist.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.db import BackendError, InMemoryDbClient
from portfolio.dependencies import get_db_client
from portfolio.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage the admin allowlist")
    parser.add_argument("user_id", help="Auth user id (uuid)")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Remove the user from the allowlist instead of adding it",
    )
    args = parser.parse_args()

    configure_logging("INFO")
    db = get_db_client()
    if isinstance(db, InMemoryDbClient):
        logger.warning("DATABASE_URL is not set; changes only live in this process")

    try:
        if args.revoke:
            if db.remove_admin(args.user_id):
                logger.info("Revoked admin from %s", args.user_id)
            else:
                logger.info("%s was not an admin", args.user_id)
        else:
            db.add_admin(args.user_id)
            logger.info("Granted admin to %s", args.user_id)
    except BackendError as exc:
        logger.error("Allowlist update failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
