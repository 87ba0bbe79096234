"""Tests for system category seeding."""

from ledgerline.models import Category, UNCATEGORIZED
from ledgerline.seed import SYSTEM_CATEGORIES, seed_categories


def test_seed_categories(db_session):
    assert seed_categories(db_session) == len(SYSTEM_CATEGORIES)
    names = {c.name for c in db_session.query(Category).all()}
    assert UNCATEGORIZED in names


def test_seed_is_idempotent(db_session, uncategorized_category):
    assert seed_categories(db_session) == len(SYSTEM_CATEGORIES) - 1
    assert seed_categories(db_session) == 0
    assert db_session.query(Category).filter(Category.name == UNCATEGORIZED).count() == 1
