"""Category assignment from a user's own history and their rules."""

import logging
from decimal import Decimal
from typing import Dict

from sqlalchemy.orm import Session

from ledgerline.models.category import CategorizationRule
from ledgerline.models.transaction import Transaction, ClassificationSource

logger = logging.getLogger(__name__)

LEARNED_CONFIDENCE = 0.85
RULE_CONFIDENCE = 0.9


def build_merchant_category_lookup(db: Session, user_id: str) -> Dict[str, str]:
    """
    Map lower-cased merchant key -> category id.

    Only manual and learned classifications count; for a merchant seen
    several times the most recent transaction wins.
    """
    transactions = db.query(Transaction.merchant_key, Transaction.category_id).filter(
        Transaction.user_id == user_id,
        Transaction.classification_source.in_([ClassificationSource.manual, ClassificationSource.learned]),
        Transaction.category_id.isnot(None)
    ).order_by(Transaction.posted_date, Transaction.created_at).all()

    lookup: Dict[str, str] = {}
    for merchant_key, category_id in transactions:
        if merchant_key:
            lookup[merchant_key.lower()] = category_id

    logger.debug("Built merchant category lookup with %d merchants for user %s", len(lookup), user_id)
    return lookup


def _rule_matches(rule: CategorizationRule, transaction: Transaction) -> bool:
    pattern = (rule.merchant_pattern or "").lower()
    if pattern not in (transaction.merchant_key or "").lower():
        return False

    amount = Decimal(transaction.amount)
    if rule.amount_min is not None and amount < Decimal(rule.amount_min):
        return False
    if rule.amount_max is not None and amount > Decimal(rule.amount_max):
        return False
    return True


def apply_categorization_rules(db: Session, user_id: str) -> int:
    """
    Apply active rules to transactions still on the default category.

    Rules are tried by descending priority; the first match wins.
    Returns the number of transactions categorized.
    """
    rules = db.query(CategorizationRule).filter(
        CategorizationRule.user_id == user_id,
        CategorizationRule.is_active == True
    ).order_by(CategorizationRule.priority.desc()).all()

    if not rules:
        return 0

    transactions = db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.classification_source == ClassificationSource.default
    ).all()

    categorized = 0
    for transaction in transactions:
        for rule in rules:
            if _rule_matches(rule, transaction):
                transaction.category_id = rule.category_id
                transaction.classification_source = ClassificationSource.rule
                transaction.classification_confidence = RULE_CONFIDENCE
                rule.match_count = (rule.match_count or 0) + 1
                categorized += 1
                break

    db.commit()
    logger.info("Categorization rules matched %d transactions for user %s", categorized, user_id)
    return categorized
