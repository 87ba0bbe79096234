"""
Transaction schemas.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from ledgerline.models.transaction import ClassificationSource, TransactionType


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    account_id: Optional[str]
    posted_date: date
    description: str
    amount: Decimal
    type: Optional[TransactionType]
    merchant_key: str
    fingerprint_hash: str
    category_id: Optional[str]
    classification_source: ClassificationSource
    classification_confidence: float
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int


class RegenerateKeysRequest(BaseModel):
    user_id: str


class RegenerateKeysResponse(BaseModel):
    success: bool = True
    updated: int
    unchanged: int
