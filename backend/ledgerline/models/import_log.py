"""
Import log database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Enum, Text
from sqlalchemy.orm import relationship
import enum
from ledgerline.database import Base


class ImportStatus(str, enum.Enum):
    """Import status enumeration."""
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class ImportLog(Base):
    """Import log model for tracking processed CSV batches."""

    __tablename__ = "import_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    account_id = Column(String(36), nullable=True)
    filename = Column(String(255), nullable=True)
    status = Column(Enum(ImportStatus), nullable=False, default=ImportStatus.pending)
    total_rows = Column(Integer, default=0, nullable=False)
    transactions_imported = Column(Integer, default=0, nullable=False)
    transactions_skipped = Column(Integer, default=0, nullable=False)
    transactions_failed = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="import_log")
