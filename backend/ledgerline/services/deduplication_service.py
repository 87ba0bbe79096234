"""
Deduplication service for transactions.

A fingerprint is built from the posted date, the amount magnitude, the
merchant key and the account. The sign of the amount is deliberately
discarded: the same physical charge shows up as a debit in one statement
format and as a credit in another, so duplicates are defined on magnitude.
"""

import hashlib
import logging
import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Set, Union

from sqlalchemy.orm import Session

from ledgerline.models.transaction import Transaction
from ledgerline.services.merchant_service import generate_merchant_key

logger = logging.getLogger(__name__)

FINGERPRINT_MAX_LENGTH = 255
DEFAULT_ACCOUNT = "default"
ROLLING32 = "rolling32"
SHA256 = "sha256"
HASH_ALGORITHMS = (ROLLING32, SHA256)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def _to_minor_units(amount: Union[Decimal, int, float, str]) -> int:
    """Absolute amount in cents, rounding half away from zero."""
    value = abs(Decimal(str(amount)))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_transaction_fingerprint(
    posted_date: Union[date, str],
    amount: Union[Decimal, int, float, str],
    description: str,
    account_id: Optional[str] = None
) -> str:
    """
    Build the fingerprint token for a transaction.
    Uses YYYYMMDD_cents_MERCHANTKEY_account, capped at 255 characters.
    """
    date_str = posted_date.isoformat() if isinstance(posted_date, date) else str(posted_date)

    components = [
        _NON_DIGIT_RE.sub("", date_str),
        str(_to_minor_units(amount)),
        generate_merchant_key(description),
        account_id or DEFAULT_ACCOUNT,
    ]
    return "_".join(components)[:FINGERPRINT_MAX_LENGTH]


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _rolling32(fingerprint: str) -> str:
    # hash = hash * 31 + code unit, wrapped to a signed 32-bit integer
    encoded = fingerprint.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return _base36(abs(value))


def hash_fingerprint(fingerprint: str, algorithm: str = ROLLING32) -> str:
    """
    Short digest of a fingerprint for cheap indexing.

    rolling32 is a non-cryptographic 32-bit digest; sha256 widens it to the
    first 64 bits of a SHA-256 hex digest.
    """
    if algorithm == ROLLING32:
        return _rolling32(fingerprint)
    if algorithm == SHA256:
        return hashlib.sha256(fingerprint.encode()).hexdigest()[:16]
    raise ValueError(f"Unknown fingerprint hash algorithm: {algorithm}")


def generate_fingerprint_hash(
    posted_date: Union[date, str],
    amount: Union[Decimal, int, float, str],
    description: str,
    account_id: Optional[str] = None,
    algorithm: str = ROLLING32
) -> str:
    """Fingerprint and hash in one step."""
    fingerprint = generate_transaction_fingerprint(posted_date, amount, description, account_id)
    return hash_fingerprint(fingerprint, algorithm)


def _batched(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def find_existing_hashes(
    db: Session,
    user_id: str,
    hashes: Iterable[str],
    batch_size: int = 100
) -> Set[str]:
    """
    Return the subset of fingerprint hashes already stored for a user.

    Queries run in bounded batches; a failing batch raises rather than
    under-reporting existing rows.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    unique_hashes = sorted(set(hashes))
    existing: Set[str] = set()

    for batch in _batched(unique_hashes, batch_size):
        rows = db.query(Transaction.fingerprint_hash).filter(
            Transaction.user_id == user_id,
            Transaction.fingerprint_hash.in_(batch)
        ).all()
        existing.update(row[0] for row in rows)

    logger.debug("Found %d of %d fingerprint hashes for user %s", len(existing), len(unique_hashes), user_id)
    return existing


def is_duplicate(db: Session, user_id: str, fingerprint_hash: str) -> bool:
    """Check if a transaction with this fingerprint hash already exists"""
    return db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.fingerprint_hash == fingerprint_hash
    ).first() is not None
