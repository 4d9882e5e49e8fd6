import logging
import time

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ragadmin.core.config import settings
from ragadmin.core.exceptions import ExternalServiceError
from ragadmin.core.limiter import limiter
from ragadmin.database import get_db
from ragadmin.dependencies import get_connection_history
from ragadmin.schemas.extraction import (
    ConnectionEntry,
    ExtractionResult,
    ProxyStatusResponse,
    UrlExtractionRequest,
    UrlValidationRequest,
    UrlValidationResponse,
)
from ragadmin.services.audit import AuditService
from ragadmin.services.connection_monitor import ConnectionHistory
from ragadmin.services.document_service import DocumentService
from ragadmin.services.error_hints import hint_for
from ragadmin.services.hosted_functions import PdfProxyClient
from ragadmin.services.pdf_extraction import PdfTextExtractor
from ragadmin.services.url_utils import convert_google_drive_url, validate_pdf_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extraction")


@router.post("/pdf", response_model=ExtractionResult)
async def extract_uploaded_pdf(file: UploadFile = File(...)):
    """Run the extraction chain over an uploaded PDF."""
    start = time.time()
    data = await file.read()
    if len(data) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.max_upload_mb}MB limit")

    result = await run_in_threadpool(PdfTextExtractor().extract, data)
    if not result.success:
        result.hint = hint_for(result.text)
    logger.info(
        f"Extracted {result.char_count} chars from {file.filename} "
        f"via {result.strategy or 'none'} in {time.time() - start:.2f}s"
    )
    return result


@router.post("/url", response_model=ExtractionResult)
@limiter.limit("10/minute")
def extract_from_url(request: Request, payload: UrlExtractionRequest, db: Session = Depends(get_db)):
    """Fetch a PDF through the proxy and extract its text."""
    url, _ = convert_google_drive_url(payload.url)
    validation = validate_pdf_url(url)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.message)

    try:
        data = PdfProxyClient().fetch_document(
            url,
            title=payload.title,
            document_id=payload.document_id,
            store_in_database=payload.store_in_database,
        )
    except ExternalServiceError as e:
        return ExtractionResult(success=False, text=e.message, hint=(e.details or {}).get("hint") or hint_for(e.message))

    result = PdfTextExtractor().extract(data)
    if not result.success:
        result.hint = hint_for(result.text)
        return result

    if payload.store_in_database and payload.document_id is not None:
        DocumentService(db).set_content(payload.document_id, result.text)
        AuditService.log(
            db,
            action="store_extracted_content",
            entity_type="document",
            entity_id=payload.document_id,
            details={"strategy": result.strategy, "chars": result.char_count},
        )
        db.commit()
    return result


@router.post("/validate-url", response_model=UrlValidationResponse)
def validate_url(payload: UrlValidationRequest):
    converted, was_converted = convert_google_drive_url(payload.url)
    validation = validate_pdf_url(converted)
    return UrlValidationResponse(
        is_valid=validation.is_valid,
        message=validation.message,
        converted_url=converted if was_converted else None,
        was_converted=was_converted,
    )


@router.get("/proxy-status", response_model=ProxyStatusResponse)
def proxy_status(check: bool = False, history: ConnectionHistory = Depends(get_connection_history)):
    """Connection history of the PDF proxy. Pass check=true to probe it first."""
    if check:
        PdfProxyClient(history).connection_test()
    stability, stable = history.stability()
    return ProxyStatusResponse(
        connected=history.is_connected,
        stability=stability,
        stable=stable,
        last_error=history.last_error,
        history=[ConnectionEntry(timestamp=e.timestamp, ok=e.ok, error=e.error) for e in history.entries()],
    )
