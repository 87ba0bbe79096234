"""
Database models package.
"""

from ledgerline.models.category import Category, CategorizationRule, UNCATEGORIZED
from ledgerline.models.transaction import Transaction, TransactionType, ClassificationSource
from ledgerline.models.recurring import RecurringSeries, Cadence, Confidence, RecurringStatus
from ledgerline.models.import_log import ImportLog, ImportStatus

__all__ = [
    "Category",
    "CategorizationRule",
    "UNCATEGORIZED",
    "Transaction",
    "TransactionType",
    "ClassificationSource",
    "RecurringSeries",
    "Cadence",
    "Confidence",
    "RecurringStatus",
    "ImportLog",
    "ImportStatus",
]
