"""
Transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Numeric, Float, Text, ForeignKey, Index, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from ledgerline.database import Base


class TransactionType(str, enum.Enum):
    """Direction of money movement."""
    credit = "credit"
    debit = "debit"


class ClassificationSource(str, enum.Enum):
    """How a transaction got its category."""
    rule = "rule"
    learned = "learned"
    default = "default"
    manual = "manual"


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    account_id = Column(String(36), nullable=True)
    import_id = Column(String(36), ForeignKey("import_logs.id"), nullable=True)
    posted_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = expense, positive = income
    type = Column(Enum(TransactionType), nullable=True)
    merchant_key = Column(String(100), nullable=False, index=True)
    fingerprint = Column(String(255), nullable=False)
    fingerprint_hash = Column(String(64), nullable=False)  # For deduplication
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    classification_source = Column(
        Enum(ClassificationSource), default=ClassificationSource.default, nullable=False
    )
    classification_confidence = Column(Float, default=0.5, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="transactions")
    import_log = relationship("ImportLog", back_populates="transactions")

    __table_args__ = (
        UniqueConstraint("user_id", "fingerprint_hash", name="uq_transaction_user_fingerprint"),
        Index("idx_transaction_user_date", "user_id", "posted_date"),
    )
