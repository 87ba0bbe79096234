"""
Recurring series database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Enum, UniqueConstraint
import enum
from ledgerline.database import Base


class Cadence(str, enum.Enum):
    """Recurring cadence enumeration."""
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    quarterly = "quarterly"
    annual = "annual"


class Confidence(str, enum.Enum):
    """Detection confidence bucket."""
    high = "high"
    medium = "medium"
    low = "low"


class RecurringStatus(str, enum.Enum):
    """Lifecycle of a recurring series."""
    active = "active"
    paused = "paused"
    cancelled = "cancelled"
    pending_confirmation = "pending_confirmation"


class RecurringSeries(Base):
    """A subscription or bill inferred from a user's transaction history."""

    __tablename__ = "recurring_series"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    merchant_key = Column(String(100), nullable=False)
    merchant_name = Column(String(255), nullable=False)
    cadence = Column(Enum(Cadence), nullable=False)
    average_amount = Column(Numeric(12, 2), nullable=False)
    last_amount = Column(Numeric(12, 2), nullable=True)
    amount_variance = Column(Numeric(8, 2), nullable=True)  # Percent spread of amounts
    confidence = Column(Enum(Confidence), nullable=False, default=Confidence.low)
    status = Column(Enum(RecurringStatus), nullable=False, default=RecurringStatus.pending_confirmation)
    occurrence_count = Column(Integer, nullable=False, default=0)
    last_occurrence_date = Column(Date, nullable=True)
    next_expected_date = Column(Date, nullable=True)
    tolerance_days = Column(Integer, nullable=False, default=3)
    is_variable = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_recurring_user_merchant"),
    )
