"""
FastAPI dependencies.
"""

from typing import Generator
from sqlalchemy.orm import Session

from ledgerline.config import settings
from ledgerline.database import SessionLocal
from ledgerline.services.import_service import ImportAnalyzer


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_import_analyzer() -> ImportAnalyzer:
    """Build an import analyzer from application settings."""
    return ImportAnalyzer(
        lookup_batch_size=settings.import_lookup_batch_size,
        preview_limit=settings.import_preview_limit,
        error_preview_limit=settings.import_error_preview_limit,
        hash_algorithm=settings.fingerprint_hash_algorithm,
    )
