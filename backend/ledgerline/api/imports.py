"""
Import API endpoints.
"""

from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from sqlalchemy.orm import Session
import logging

from ledgerline.dependencies import get_db, get_import_analyzer
from ledgerline.parsers import CSVParser, ParseError, detect_column_mapping
from ledgerline.schemas.import_file import (
    AnalyzeRequest,
    CSVParseResponse,
    ImportAnalysis,
    ImportLogResponse,
    ProcessRequest,
    ProcessResponse,
)
from ledgerline.services import import_service
from ledgerline.services.import_service import ImportAnalyzer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/parse", response_model=CSVParseResponse)
async def parse_file(file: UploadFile = File(...)):
    """Parse an uploaded CSV and suggest a column mapping"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    parser = CSVParser()
    if not parser.can_parse(file.filename):
        raise HTTPException(status_code=400, detail="File type not supported. Allowed: .csv")

    content = await file.read()
    try:
        parsed = parser.parse(content.decode("utf-8-sig"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CSVParseResponse(
        filename=file.filename,
        headers=parsed.headers,
        rows=parsed.rows,
        total_rows=parsed.total_rows,
        detected_mapping=detect_column_mapping(parsed.headers),
    )


@router.post("/analyze", response_model=ImportAnalysis)
def analyze_import(
    request: AnalyzeRequest,
    db: Session = Depends(get_db),
    analyzer: ImportAnalyzer = Depends(get_import_analyzer)
):
    """Classify rows as new, duplicate or invalid without storing anything"""
    try:
        return analyzer.analyze(
            request.rows,
            request.mapping,
            import_service.hash_lookup_for_user(db, request.user_id),
            account_id=request.account_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Import analysis failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/process", response_model=ProcessResponse)
def process_import(
    request: ProcessRequest,
    db: Session = Depends(get_db),
    analyzer: ImportAnalyzer = Depends(get_import_analyzer)
):
    """Store the new rows of a batch"""
    try:
        return import_service.process_import(db, request, analyzer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Import processing failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/history", response_model=list[ImportLogResponse])
def get_import_history(
    user_id: str,
    limit: int = 20,
    db: Session = Depends(get_db)
):
    """Get import history"""
    logs = import_service.get_import_history(db, user_id, limit)
    return [ImportLogResponse.model_validate(log) for log in logs]
