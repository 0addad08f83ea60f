"""
Seed the category list used by the dashboard and the search filter.

Categories are keyed by their lower-cased name, so re-running the script
only refreshes display names.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.db import DbClient, category_id_for
from backend.dependencies import get_db_client

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ("Clothing", "Food", "Household Supplies")


def seed_categories(db: DbClient, names: list[str], dry_run: bool = False) -> int:
    """Create any missing categories and return how many were new."""
    existing = {category.id for category in db.list_categories()}
    created = 0
    for name in names:
        category_id = category_id_for(name)
        if not category_id:
            logger.warning("Skipping blank category name %r", name)
            continue
        if category_id in existing:
            logger.info("Category %s already exists", category_id)
        else:
            created += 1
            logger.info("Adding category %s", category_id)
        if not dry_run:
            db.save_category(name)
        existing.add(category_id)
    return created


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--category",
        action="append",
        dest="categories",
        help="Category name to seed (repeatable; defaults to the standard list)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many categories would be added without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    db = get_db_client()
    created = seed_categories(
        db, args.categories or list(DEFAULT_CATEGORIES), dry_run=args.dry_run
    )
    logger.info("Added %d categories", created)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
