"""
Import service: analysis and processing of parsed CSV rows.
"""

import logging
import uuid
from typing import Callable, Dict, List, NamedTuple, Optional, Set, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ledgerline.models.category import Category, UNCATEGORIZED
from ledgerline.models.import_log import ImportLog, ImportStatus
from ledgerline.models.transaction import Transaction, TransactionType, ClassificationSource
from ledgerline.parsers.base import ParseError
from ledgerline.parsers.csv_parser import parse_amount, parse_date
from ledgerline.schemas.import_file import (
    AnalyzedTransaction,
    ColumnMapping,
    DateRange,
    ImportAnalysis,
    ProcessRequest,
    ProcessResponse,
)
from ledgerline.services.categorization_service import (
    LEARNED_CONFIDENCE,
    apply_categorization_rules,
    build_merchant_category_lookup,
)
from ledgerline.services.deduplication_service import (
    ROLLING32,
    find_existing_hashes,
    generate_transaction_fingerprint,
    hash_fingerprint,
)
from ledgerline.services.merchant_service import generate_merchant_key

logger = logging.getLogger(__name__)

# Receives one batch of fingerprint hashes, returns those already stored
ExistsByHash = Callable[[List[str]], Set[str]]


class PreparedRow(NamedTuple):
    """A row that parsed cleanly, with everything needed to classify and store it."""
    index: int
    transaction: AnalyzedTransaction
    merchant_key: str


def hash_lookup_for_user(db: Session, user_id: str) -> ExistsByHash:
    """Existence check backed by the transactions table."""
    def lookup(batch: List[str]) -> Set[str]:
        return find_existing_hashes(db, user_id, batch, batch_size=max(len(batch), 1))
    return lookup


class ImportAnalyzer:
    """
    Classifies parsed rows as new, duplicate or invalid.

    Per-row failures are recorded and counted without touching other rows.
    A failing existence lookup fails the whole analysis so that rows are
    never reported as new by accident.
    """

    def __init__(
        self,
        lookup_batch_size: int = 100,
        preview_limit: int = 50,
        error_preview_limit: int = 20,
        hash_algorithm: str = ROLLING32
    ):
        if lookup_batch_size < 1:
            raise ValueError("lookup_batch_size must be at least 1")
        self.lookup_batch_size = lookup_batch_size
        self.preview_limit = preview_limit
        self.error_preview_limit = error_preview_limit
        self.hash_algorithm = hash_algorithm

    def prepare_rows(
        self,
        rows: List[Dict[str, str]],
        mapping: ColumnMapping,
        account_id: Optional[str] = None
    ) -> Tuple[List[PreparedRow], List[str]]:
        """Parse and fingerprint every row, in order. Returns (prepared, errors)."""
        prepared: List[PreparedRow] = []
        errors: List[str] = []
        missing_mapping = mapping.missing_required()

        for index, row in enumerate(rows):
            row_number = index + 1

            if missing_mapping:
                errors.append(
                    f"Row {row_number}: Missing required mapping fields ({', '.join(missing_mapping)})"
                )
                continue

            date_str = row.get(mapping.posted_date)
            description = row.get(mapping.description)
            amount_str = row.get(mapping.amount)

            missing_values = [
                name for name, value in
                (("date", date_str), ("description", description), ("amount", amount_str))
                if not value
            ]
            if missing_values:
                errors.append(f"Row {row_number}: Missing {', '.join(missing_values)}")
                continue

            try:
                posted_date = parse_date(date_str)
                amount = parse_amount(amount_str)
            except ParseError as e:
                logger.debug("Row %d failed to parse: %s", row_number, e)
                errors.append(f"Row {row_number}: {e}")
                continue

            fingerprint = generate_transaction_fingerprint(posted_date, amount, description, account_id)
            prepared.append(PreparedRow(
                index=index,
                transaction=AnalyzedTransaction(
                    date=posted_date,
                    description=description,
                    amount=amount,
                    fingerprint=fingerprint,
                    fingerprint_hash=hash_fingerprint(fingerprint, self.hash_algorithm),
                ),
                merchant_key=generate_merchant_key(description),
            ))

        return prepared, errors

    def lookup_existing(self, hashes: List[str], exists_by_hash: ExistsByHash) -> Set[str]:
        """Union of existence checks over bounded batches of unique hashes."""
        unique_hashes = list(dict.fromkeys(hashes))
        existing: Set[str] = set()

        for start in range(0, len(unique_hashes), self.lookup_batch_size):
            batch = unique_hashes[start:start + self.lookup_batch_size]
            existing.update(exists_by_hash(batch))

        return existing

    def analyze(
        self,
        rows: List[Dict[str, str]],
        mapping: ColumnMapping,
        exists_by_hash: ExistsByHash,
        account_id: Optional[str] = None
    ) -> ImportAnalysis:
        """Classify a batch of rows against the already-stored fingerprints."""
        if rows is None or mapping is None:
            raise ValueError("Missing required fields: rows and mapping")

        prepared, errors = self.prepare_rows(rows, mapping, account_id)
        existing = self.lookup_existing(
            [p.transaction.fingerprint_hash for p in prepared],
            exists_by_hash
        )

        duplicate_details: List[AnalyzedTransaction] = []
        new_details: List[AnalyzedTransaction] = []

        for item in prepared:
            txn = item.transaction.model_copy(
                update={"is_duplicate": item.transaction.fingerprint_hash in existing}
            )
            if txn.is_duplicate:
                duplicate_details.append(txn)
            else:
                new_details.append(txn)

        dates = [p.transaction.date for p in prepared]

        logger.info(
            "Analyzed %d rows: %d new, %d duplicates, %d errors",
            len(rows), len(new_details), len(duplicate_details), len(errors)
        )

        return ImportAnalysis(
            total_rows=len(rows),
            new_transactions=len(new_details),
            duplicates=len(duplicate_details),
            errors=len(errors),
            date_range=DateRange(
                earliest=min(dates) if dates else None,
                latest=max(dates) if dates else None,
            ),
            duplicate_details=duplicate_details[:self.preview_limit],
            new_transaction_details=new_details[:self.preview_limit],
            error_details=errors[:self.error_preview_limit],
        )


def _get_uncategorized_id(db: Session, user_id: str) -> Optional[str]:
    category = db.query(Category).filter(
        Category.name == UNCATEGORIZED,
        or_(Category.user_id == user_id, Category.is_system.is_(True))
    ).first()
    return category.id if category else None


def process_import(
    db: Session,
    request: ProcessRequest,
    analyzer: Optional[ImportAnalyzer] = None
) -> ProcessResponse:
    """
    Persist the new rows of a batch.

    Known duplicates (stored or repeated within the batch) are skipped.
    Categories come from the user's history when the merchant has been
    categorized before, otherwise the Uncategorized category is used.
    """
    if request.rows is None or request.mapping is None:
        raise ValueError("Missing required fields: rows and mapping")

    analyzer = analyzer or ImportAnalyzer()
    import_id = str(uuid.uuid4())

    import_log = ImportLog(
        id=import_id,
        user_id=request.user_id,
        account_id=request.account_id,
        filename=request.filename,
        total_rows=len(request.rows),
        status=ImportStatus.processing
    )
    db.add(import_log)
    db.commit()

    try:
        prepared, errors = analyzer.prepare_rows(request.rows, request.mapping, request.account_id)
        existing = analyzer.lookup_existing(
            [p.transaction.fingerprint_hash for p in prepared],
            hash_lookup_for_user(db, request.user_id)
        )

        uncategorized_id = _get_uncategorized_id(db, request.user_id)
        category_lookup = build_merchant_category_lookup(db, request.user_id)

        imported = 0
        duplicates = 0
        auto_categorized = 0
        seen: Set[str] = set(existing)

        for item in prepared:
            txn_data = item.transaction
            if txn_data.fingerprint_hash in seen:
                duplicates += 1
                continue
            seen.add(txn_data.fingerprint_hash)

            learned_category_id = category_lookup.get(item.merchant_key.lower())
            if learned_category_id:
                category_id = learned_category_id
                source = ClassificationSource.learned
                confidence = LEARNED_CONFIDENCE
                auto_categorized += 1
            else:
                category_id = uncategorized_id
                source = ClassificationSource.default
                confidence = 0.5

            db.add(Transaction(
                id=str(uuid.uuid4()),
                user_id=request.user_id,
                account_id=request.account_id,
                import_id=import_id,
                posted_date=txn_data.date,
                description=txn_data.description,
                amount=txn_data.amount,
                type=TransactionType.credit if txn_data.amount >= 0 else TransactionType.debit,
                merchant_key=item.merchant_key,
                fingerprint=txn_data.fingerprint,
                fingerprint_hash=txn_data.fingerprint_hash,
                category_id=category_id,
                classification_source=source,
                classification_confidence=confidence,
            ))
            imported += 1

        db.commit()

        if imported > 0:
            apply_categorization_rules(db, request.user_id)

        import_log.status = ImportStatus.completed
        import_log.transactions_imported = imported
        import_log.transactions_skipped = duplicates
        import_log.transactions_failed = len(errors)
        if errors:
            import_log.error_message = "; ".join(errors[:10])
        db.commit()

        logger.info(
            "Import %s for user %s: %d imported, %d duplicates, %d errors",
            import_id, request.user_id, imported, duplicates, len(errors)
        )

        return ProcessResponse(
            import_id=import_id,
            status=ImportStatus.completed,
            total=len(request.rows),
            imported=imported,
            duplicates=duplicates,
            errors=len(errors),
            auto_categorized=auto_categorized,
            uncategorized=imported - auto_categorized,
        )

    except Exception as e:
        db.rollback()
        import_log.status = ImportStatus.failed
        import_log.error_message = str(e)
        db.commit()
        raise


def get_import_history(db: Session, user_id: str, limit: int = 20) -> List[ImportLog]:
    """Get recent import history"""
    return db.query(ImportLog).filter(
        ImportLog.user_id == user_id
    ).order_by(ImportLog.created_at.desc()).limit(limit).all()
