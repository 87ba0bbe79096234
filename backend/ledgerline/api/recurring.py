"""API endpoints for recurring charge detection."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from ledgerline.config import settings
from ledgerline.dependencies import get_db
from ledgerline.schemas.recurring import (
    DetectRequest,
    DetectionResponse,
    RecurringSeriesResponse,
)
from ledgerline.services import recurring_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.get("", response_model=List[RecurringSeriesResponse])
def get_recurring_series(
    user_id: str,
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db)
):
    """Get a user's stored recurring series."""
    series = recurring_service.get_recurring_series(db, user_id, include_inactive)
    return [RecurringSeriesResponse.model_validate(s) for s in series]


@router.post("/detect", response_model=DetectionResponse)
def detect_recurring(
    request: DetectRequest,
    db: Session = Depends(get_db)
):
    """
    Detect recurring charges in the user's history and upsert them.
    Existing series are only replaced by patterns with more occurrences.
    """
    try:
        patterns, inserted, updated = recurring_service.detect_and_reconcile(
            db, request.user_id, tolerance_days=settings.recurring_tolerance_days
        )
    except Exception:
        logger.exception("Recurring detection failed")
        raise HTTPException(status_code=500, detail="Failed to detect recurring charges")

    return DetectionResponse(
        detected=len(patterns),
        inserted=inserted,
        updated=updated,
        patterns=patterns,
    )
