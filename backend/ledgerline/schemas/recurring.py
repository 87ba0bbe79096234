"""Pydantic schemas for recurring detection."""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from ledgerline.models.recurring import Cadence, Confidence, RecurringStatus


class TransactionSnapshot(BaseModel):
    """The slice of a stored transaction the detector needs."""
    id: str
    posted_date: date
    description: str
    amount: Decimal
    merchant_key: str

    class Config:
        from_attributes = True


class RecurringPattern(BaseModel):
    """A recurring charge inferred from one merchant's history."""
    merchant_key: str
    merchant_name: str
    cadence: Cadence
    average_amount: Decimal
    last_amount: Decimal
    amount_variance: Decimal  # (max - min) / average, in percent
    confidence: Confidence
    occurrence_count: int
    last_occurrence_date: date
    next_expected_date: date
    is_variable: bool
    is_subscription: bool = False
    subscription_confidence: int = 0
    transaction_ids: List[str] = []


class DetectRequest(BaseModel):
    user_id: str


class DetectionResponse(BaseModel):
    success: bool = True
    detected: int
    inserted: int
    updated: int
    patterns: List[RecurringPattern] = []


class RecurringSeriesResponse(BaseModel):
    id: str
    user_id: str
    merchant_key: str
    merchant_name: str
    cadence: Cadence
    average_amount: Decimal
    last_amount: Optional[Decimal] = None
    amount_variance: Optional[Decimal] = None
    confidence: Confidence
    status: RecurringStatus
    occurrence_count: int
    last_occurrence_date: Optional[date] = None
    next_expected_date: Optional[date] = None
    tolerance_days: int
    is_variable: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
