"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional
from datetime import date
import logging

from ledgerline.dependencies import get_db
from ledgerline.models.transaction import Transaction
from ledgerline.schemas.transaction import (
    TransactionResponse,
    TransactionListResponse,
    RegenerateKeysRequest,
    RegenerateKeysResponse,
)
from ledgerline.services import transaction_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    user_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    account_id: Optional[str] = None,
    merchant_key: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List a user's transactions with filtering and pagination"""
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    if account_id:
        query = query.filter(Transaction.account_id == account_id)
    if merchant_key:
        query = query.filter(Transaction.merchant_key == merchant_key)
    if start_date:
        query = query.filter(Transaction.posted_date >= start_date)
    if end_date:
        query = query.filter(Transaction.posted_date <= end_date)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Transaction.description.ilike(search_term),
                Transaction.merchant_key.ilike(search_term)
            )
        )

    total = query.count()

    query = query.order_by(Transaction.posted_date.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    transactions = query.all()
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    user_id: str,
    db: Session = Depends(get_db)
):
    """Get one of a user's transactions"""
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.post("/regenerate-merchant-keys", response_model=RegenerateKeysResponse)
def regenerate_merchant_keys(
    request: RegenerateKeysRequest,
    db: Session = Depends(get_db)
):
    """Recompute merchant keys for all of a user's transactions"""
    try:
        updated, unchanged = transaction_service.regenerate_merchant_keys(db, request.user_id)
    except Exception as e:
        logger.exception("Merchant key regeneration failed")
        raise HTTPException(status_code=500, detail=str(e))

    return RegenerateKeysResponse(updated=updated, unchanged=unchanged)
