"""
Pydantic schemas package.
"""

from ledgerline.schemas.import_file import (
    ImportStatus,
    ColumnMapping,
    ParsedCSV,
    CSVParseResponse,
    AnalyzeRequest,
    AnalyzedTransaction,
    DateRange,
    ImportAnalysis,
    ProcessRequest,
    ProcessResponse,
    ImportLogResponse,
)
from ledgerline.schemas.recurring import (
    TransactionSnapshot,
    RecurringPattern,
    DetectRequest,
    DetectionResponse,
    RecurringSeriesResponse,
)
from ledgerline.schemas.transaction import (
    TransactionResponse,
    TransactionListResponse,
    RegenerateKeysRequest,
    RegenerateKeysResponse,
)

__all__ = [
    "ImportStatus",
    "ColumnMapping",
    "ParsedCSV",
    "CSVParseResponse",
    "AnalyzeRequest",
    "AnalyzedTransaction",
    "DateRange",
    "ImportAnalysis",
    "ProcessRequest",
    "ProcessResponse",
    "ImportLogResponse",
    "TransactionSnapshot",
    "RecurringPattern",
    "DetectRequest",
    "DetectionResponse",
    "RecurringSeriesResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "RegenerateKeysRequest",
    "RegenerateKeysResponse",
]
