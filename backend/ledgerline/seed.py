"""
Seed script for system categories.
"""

import logging
import uuid

from sqlalchemy.orm import Session

from ledgerline.database import SessionLocal, init_db
from ledgerline.models import Category, UNCATEGORIZED

logger = logging.getLogger(__name__)

SYSTEM_CATEGORIES = [
    UNCATEGORIZED,
    "Income",
    "Housing",
    "Utilities",
    "Groceries",
    "Dining",
    "Transportation",
    "Subscriptions",
    "Shopping",
    "Health",
    "Transfers",
]


def seed_categories(db: Session) -> int:
    """Insert missing system categories. Returns how many were added."""
    existing = {
        name for (name,) in db.query(Category.name).filter(Category.is_system == True).all()
    }

    added = 0
    for name in SYSTEM_CATEGORIES:
        if name in existing:
            continue
        db.add(Category(id=str(uuid.uuid4()), name=name, is_system=True))
        added += 1

    db.commit()
    logger.info("Seeded %d system categories", added)
    return added


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_categories(session)
    finally:
        session.close()
