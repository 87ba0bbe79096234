"""Service for recurring charge detection and reconciliation."""

import logging
import statistics
import uuid
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ledgerline.models.recurring import Cadence, Confidence, RecurringSeries, RecurringStatus
from ledgerline.models.transaction import Transaction
from ledgerline.schemas.recurring import RecurringPattern, TransactionSnapshot
from ledgerline.services.merchant_service import extract_merchant_display_name

logger = logging.getLogger(__name__)

# Inclusive ranges for the mean gap in days
CADENCE_RANGES: List[Tuple[Cadence, float, float]] = [
    (Cadence.weekly, 5, 9),
    (Cadence.biweekly, 12, 16),
    (Cadence.monthly, 26, 35),
    (Cadence.quarterly, 85, 95),
    (Cadence.annual, 350, 375),
]

CONFIDENCE_ORDER = {Confidence.high: 0, Confidence.medium: 1, Confidence.low: 2}

VARIABLE_AMOUNT_THRESHOLD = Decimal("10")

SUBSCRIPTION_KEYWORDS = [
    "netflix", "spotify", "hulu", "disney", "amazon prime", "youtube",
    "apple music", "icloud", "dropbox", "adobe", "microsoft", "office",
    "gym", "fitness", "membership", "subscription", "monthly", "annual",
    "premium", "pro", "plus", "unlimited", "streaming", "cloud",
    "saas", "software", "app store", "google play", "patreon",
]

COMMON_PRICE_POINTS = [
    Decimal(p) for p in (
        "4.99", "5.99", "6.99", "7.99", "8.99", "9.99",
        "10.99", "11.99", "12.99", "13.99", "14.99", "15.99",
        "19.99", "24.99", "29.99", "39.99", "49.99", "99.99",
    )
]

SUBSCRIPTION_THRESHOLD = 50

_CENTS = Decimal("0.01")


def _round2(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def determine_cadence(average_interval: float) -> Optional[Cadence]:
    """Map a mean gap in days to a cadence, or None when nothing fits."""
    for cadence, low, high in CADENCE_RANGES:
        if low <= average_interval <= high:
            return cadence
    return None


def determine_confidence(occurrence_count: int, interval_std: float, amount_variance: Decimal) -> Confidence:
    """Score count, interval regularity and amount stability (0-7) and bucket it."""
    score = 0

    if occurrence_count >= 6:
        score += 3
    elif occurrence_count >= 4:
        score += 2
    elif occurrence_count >= 2:
        score += 1

    if interval_std <= 2:
        score += 2
    elif interval_std <= 5:
        score += 1

    if amount_variance <= 5:
        score += 2
    elif amount_variance <= 15:
        score += 1

    if score >= 6:
        return Confidence.high
    if score >= 4:
        return Confidence.medium
    return Confidence.low


def calculate_next_expected(last_date: date, cadence: Cadence) -> date:
    """Calculate the next expected date; month-based cadences respect month length."""
    if cadence == Cadence.weekly:
        return last_date + timedelta(days=7)
    elif cadence == Cadence.biweekly:
        return last_date + timedelta(days=14)
    elif cadence == Cadence.monthly:
        return last_date + relativedelta(months=1)
    elif cadence == Cadence.quarterly:
        return last_date + relativedelta(months=3)
    elif cadence == Cadence.annual:
        return last_date + relativedelta(months=12)
    raise ValueError(f"Unknown cadence: {cadence}")


def analyze_subscription_likelihood(
    transactions: List[TransactionSnapshot],
    cadence: Cadence,
    amount_variance: Decimal,
    interval_std: float,
    average_amount: Decimal
) -> Tuple[bool, int]:
    """
    Heuristic 0-100 score of how subscription-like a recurring charge is.

    Weighs keywords (30), amount consistency (20), interval regularity (20),
    cadence (15), occurrence count (15) and common price points (10).
    """
    score = 0

    merchant_key = transactions[0].merchant_key.lower()
    description = transactions[0].description.lower()
    if any(k in merchant_key or k in description for k in SUBSCRIPTION_KEYWORDS):
        score += 30

    if amount_variance <= 1:
        score += 20
    elif amount_variance <= 3:
        score += 15
    elif amount_variance <= 5:
        score += 10

    if interval_std <= 1:
        score += 20
    elif interval_std <= 2:
        score += 15
    elif interval_std <= 3:
        score += 10

    score += {
        Cadence.monthly: 15,
        Cadence.annual: 12,
        Cadence.quarterly: 8,
        Cadence.weekly: 5,
    }.get(cadence, 0)

    occurrences = len(transactions)
    if occurrences >= 6:
        score += 15
    elif occurrences >= 4:
        score += 12
    elif occurrences >= 3:
        score += 8
    elif occurrences >= 2:
        score += 5

    if any(abs(average_amount - price) < Decimal("0.5") for price in COMMON_PRICE_POINTS):
        score += 10

    score = min(score, 100)
    return score >= SUBSCRIPTION_THRESHOLD, score


def analyze_pattern(transactions: List[TransactionSnapshot]) -> Optional[RecurringPattern]:
    """
    Infer a recurring pattern from one merchant's transactions (sorted by date).

    Returns None when the gaps fit no cadence, or when the evidence is weak:
    low confidence from fewer than three occurrences.
    """
    if len(transactions) < 2:
        return None

    intervals = [
        (current.posted_date - previous.posted_date).days
        for previous, current in zip(transactions, transactions[1:])
    ]
    cadence = determine_cadence(statistics.fmean(intervals))
    if cadence is None:
        return None

    amounts = [abs(Decimal(t.amount)) for t in transactions]
    average_amount = sum(amounts) / len(amounts)
    if average_amount:
        amount_variance = (max(amounts) - min(amounts)) / average_amount * 100
    else:
        amount_variance = Decimal(0)

    interval_std = statistics.pstdev(intervals)
    confidence = determine_confidence(len(transactions), interval_std, amount_variance)

    if confidence == Confidence.low and len(transactions) < 3:
        return None

    last = transactions[-1]
    is_subscription, subscription_confidence = analyze_subscription_likelihood(
        transactions, cadence, amount_variance, interval_std, average_amount
    )

    return RecurringPattern(
        merchant_key=last.merchant_key,
        merchant_name=extract_merchant_display_name(transactions[0].description),
        cadence=cadence,
        average_amount=_round2(average_amount),
        last_amount=_round2(amounts[-1]),
        amount_variance=_round2(amount_variance),
        confidence=confidence,
        occurrence_count=len(transactions),
        last_occurrence_date=last.posted_date,
        next_expected_date=calculate_next_expected(last.posted_date, cadence),
        is_variable=amount_variance > VARIABLE_AMOUNT_THRESHOLD,
        is_subscription=is_subscription,
        subscription_confidence=subscription_confidence,
        transaction_ids=[t.id for t in transactions],
    )


def detect_recurring_charges(transactions: Iterable[TransactionSnapshot]) -> List[RecurringPattern]:
    """
    Detect recurring charges in a user's full transaction history.

    Results are ordered high, then medium, then low confidence; within a
    bucket merchants keep the order in which they first appear.
    """
    groups: Dict[str, List[TransactionSnapshot]] = defaultdict(list)
    for txn in transactions:
        groups[txn.merchant_key].append(txn)

    patterns = []
    for merchant_key, group in groups.items():
        if len(group) < 2:
            continue

        pattern = analyze_pattern(sorted(group, key=lambda t: t.posted_date))
        if pattern:
            patterns.append(pattern)

    return sorted(patterns, key=lambda p: CONFIDENCE_ORDER[p.confidence])


def get_user_transactions(db: Session, user_id: str) -> List[TransactionSnapshot]:
    """Load a user's history in the shape the detector expects."""
    transactions = db.query(Transaction).filter(
        Transaction.user_id == user_id
    ).order_by(Transaction.posted_date.asc()).all()

    return [TransactionSnapshot.model_validate(t) for t in transactions]


def reconcile_recurring_series(
    db: Session,
    user_id: str,
    patterns: List[RecurringPattern],
    tolerance_days: int = 3
) -> Tuple[int, int]:
    """
    Upsert detected patterns by merchant key.

    An existing series is only overwritten when the new pattern has seen
    more occurrences; new merchants are inserted pending confirmation.
    Returns (inserted, updated).
    """
    inserted = 0
    updated = 0

    for pattern in patterns:
        existing = db.query(RecurringSeries).filter(
            RecurringSeries.user_id == user_id,
            RecurringSeries.merchant_key == pattern.merchant_key
        ).first()

        if existing:
            if pattern.occurrence_count > existing.occurrence_count:
                existing.cadence = pattern.cadence
                existing.average_amount = pattern.average_amount
                existing.last_amount = pattern.last_amount
                existing.amount_variance = pattern.amount_variance
                existing.confidence = pattern.confidence
                existing.occurrence_count = pattern.occurrence_count
                existing.last_occurrence_date = pattern.last_occurrence_date
                existing.next_expected_date = pattern.next_expected_date
                existing.is_variable = pattern.is_variable
                existing.updated_at = datetime.utcnow()
                updated += 1
        else:
            db.add(RecurringSeries(
                id=str(uuid.uuid4()),
                user_id=user_id,
                merchant_key=pattern.merchant_key,
                merchant_name=pattern.merchant_name,
                cadence=pattern.cadence,
                average_amount=pattern.average_amount,
                last_amount=pattern.last_amount,
                amount_variance=pattern.amount_variance,
                confidence=pattern.confidence,
                status=RecurringStatus.pending_confirmation,
                occurrence_count=pattern.occurrence_count,
                last_occurrence_date=pattern.last_occurrence_date,
                next_expected_date=pattern.next_expected_date,
                tolerance_days=tolerance_days,
                is_variable=pattern.is_variable,
            ))
            inserted += 1

    db.commit()
    return inserted, updated


def detect_and_reconcile(db: Session, user_id: str, tolerance_days: int = 3) -> Tuple[List[RecurringPattern], int, int]:
    """Run detection over the user's history and store the results."""
    patterns = detect_recurring_charges(get_user_transactions(db, user_id))
    inserted, updated = reconcile_recurring_series(db, user_id, patterns, tolerance_days)

    logger.info(
        "Recurring detection for user %s: %d detected, %d inserted, %d updated",
        user_id, len(patterns), inserted, updated
    )
    return patterns, inserted, updated


def get_recurring_series(db: Session, user_id: str, include_inactive: bool = False) -> List[RecurringSeries]:
    """Stored series for a user."""
    query = db.query(RecurringSeries).filter(RecurringSeries.user_id == user_id)

    if not include_inactive:
        query = query.filter(RecurringSeries.status.in_([
            RecurringStatus.active, RecurringStatus.pending_confirmation
        ]))

    return query.order_by(RecurringSeries.merchant_name).all()
