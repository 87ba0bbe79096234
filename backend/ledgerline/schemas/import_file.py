"""
Import file schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal

from ledgerline.models.import_log import ImportStatus


REQUIRED_MAPPING_FIELDS = ("posted_date", "description", "amount")


class ColumnMapping(BaseModel):
    """Logical field -> CSV header name."""
    posted_date: Optional[str] = Field(None, description="Header holding the posted date")
    description: Optional[str] = Field(None, description="Header holding the description")
    amount: Optional[str] = Field(None, description="Header holding the signed amount")
    type: Optional[str] = Field(None, description="Header holding debit/credit type")
    category: Optional[str] = Field(None, description="Header holding the bank category")
    transaction_id: Optional[str] = Field(None, description="Header holding a bank reference")
    account_name: Optional[str] = Field(None, description="Header holding the account name")

    def missing_required(self) -> List[str]:
        return [name for name in REQUIRED_MAPPING_FIELDS if not getattr(self, name)]


class ParsedCSV(BaseModel):
    headers: List[str]
    rows: List[Dict[str, str]]
    total_rows: int


class CSVParseResponse(ParsedCSV):
    filename: str
    detected_mapping: ColumnMapping


class AnalyzeRequest(BaseModel):
    user_id: str
    rows: List[Dict[str, str]]
    mapping: ColumnMapping
    account_id: Optional[str] = None


class AnalyzedTransaction(BaseModel):
    date: date
    description: str
    amount: Decimal
    fingerprint: str
    fingerprint_hash: str
    is_duplicate: bool = False


class DateRange(BaseModel):
    earliest: Optional[date] = None
    latest: Optional[date] = None


class ImportAnalysis(BaseModel):
    total_rows: int
    new_transactions: int
    duplicates: int
    errors: int
    date_range: DateRange
    duplicate_details: List[AnalyzedTransaction] = []
    new_transaction_details: List[AnalyzedTransaction] = []
    error_details: List[str] = []


class ProcessRequest(AnalyzeRequest):
    filename: Optional[str] = None


class ProcessResponse(BaseModel):
    import_id: str
    status: ImportStatus
    total: int
    imported: int = 0
    duplicates: int = 0
    errors: int = 0
    auto_categorized: int = 0
    uncategorized: int = 0


class ImportLogResponse(BaseModel):
    id: str
    user_id: str
    account_id: Optional[str]
    filename: Optional[str]
    status: ImportStatus
    total_rows: int
    transactions_imported: int
    transactions_skipped: int
    transactions_failed: int
    error_message: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
