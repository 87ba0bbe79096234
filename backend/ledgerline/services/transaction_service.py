"""Maintenance operations over stored transactions."""

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from ledgerline.models.transaction import Transaction
from ledgerline.services.merchant_service import generate_merchant_key

logger = logging.getLogger(__name__)


def regenerate_merchant_keys(db: Session, user_id: str) -> Tuple[int, int]:
    """
    Recompute merchant keys from descriptions after normalization changes.
    Returns (updated, unchanged).
    """
    transactions = db.query(Transaction).filter(Transaction.user_id == user_id).all()

    updated = 0
    unchanged = 0
    for transaction in transactions:
        new_key = generate_merchant_key(transaction.description)
        if new_key != transaction.merchant_key:
            transaction.merchant_key = new_key
            updated += 1
        else:
            unchanged += 1

    db.commit()
    logger.info("Regenerated merchant keys for user %s: %d updated, %d unchanged", user_id, updated, unchanged)
    return updated, unchanged
