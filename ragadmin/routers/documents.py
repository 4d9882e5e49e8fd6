import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ragadmin.core.config import settings
from ragadmin.core.limiter import limiter
from ragadmin.core.schemas import ApiResponse
from ragadmin.database import get_db
from ragadmin.models.processed_document import DocumentStatus
from ragadmin.schemas.document import (
    ChunkResponse,
    DocumentCreate,
    DocumentIdsRequest,
    DocumentResponse,
    ProcessDocumentsRequest,
    ProcessingResultResponse,
    ResetResponse,
)
from ragadmin.services.audit import AuditService
from ragadmin.services.document_service import DocumentService
from ragadmin.services.file_text import extract_file_text, mime_type_for, validate_filename
from ragadmin.services.processing_service import ProcessingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents")


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return DocumentService(db).list_documents(status_filter)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(payload: DocumentCreate, db: Session = Depends(get_db)):
    if not payload.url and not payload.content:
        raise HTTPException(status_code=400, detail="Either url or content is required")
    document = DocumentService(db).create_document(**payload.model_dump())
    AuditService.log(db, action="create_document", entity_type="document", entity_id=document.id)
    db.commit()
    return document


@router.post("/upload", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    """
    Upload a document (PDF, DOCX, TXT, CSV, MD).
    The text is extracted right away and stored as the document content.
    """
    upload_start = time.time()
    logger.info(f"Document upload received: {file.filename}")

    is_valid, error_msg = validate_filename(file.filename)
    if not is_valid:
        raise HTTPException(status_code=400, detail=error_msg)

    data = await file.read()
    if len(data) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.max_upload_mb}MB limit")

    result = await run_in_threadpool(extract_file_text, data, file.filename)
    if not result.success:
        raise HTTPException(status_code=422, detail=result.text or "No text could be extracted")

    service = DocumentService(db)
    document = service.create_document(
        title=title or file.filename,
        source_type="upload",
        mime_type=mime_type_for(file.filename),
        content=result.text,
    )
    AuditService.log(
        db,
        action="upload_document",
        entity_type="document",
        entity_id=document.id,
        details={"filename": file.filename, "strategy": result.strategy, "chars": result.char_count},
    )
    db.commit()
    logger.info(f"Upload stored as document {document.id} in {time.time() - upload_start:.2f}s")
    return document


@router.post("/reset", response_model=ResetResponse)
def reset_documents(payload: DocumentIdsRequest, db: Session = Depends(get_db)):
    count = DocumentService(db).reset_documents(payload.document_ids)
    AuditService.log(db, action="reset_documents", entity_type="document", entity_id=None,
                     details={"document_ids": payload.document_ids, "reset": count})
    db.commit()
    return ResetResponse(reset=count)


@router.post("/reset-failed", response_model=ResetResponse)
def reset_failed_documents(db: Session = Depends(get_db)):
    count = DocumentService(db).reset_failed_documents()
    AuditService.log(db, action="reset_failed_documents", entity_type="document", entity_id=None,
                     details={"reset": count})
    db.commit()
    return ResetResponse(reset=count)


@router.post("/process", response_model=ApiResponse[List[ProcessingResultResponse]])
@limiter.limit("5/minute")
def process_documents(request: Request, payload: ProcessDocumentsRequest, db: Session = Depends(get_db)):
    """Extract, chunk and embed the given documents one after another."""
    results = ProcessingService(db).process_documents(
        payload.document_ids,
        generate_embeddings=payload.generate_embeddings,
    )
    succeeded = sum(1 for r in results if r.success)
    return ApiResponse.ok(
        [ProcessingResultResponse(**vars(r)) for r in results],
        metadata={"succeeded": succeeded, "failed": len(results) - succeeded},
    )


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(document_id: int, db: Session = Depends(get_db)):
    return DocumentService(db).get_document(document_id)


@router.get("/{document_id}/chunks", response_model=List[ChunkResponse])
def get_document_chunks(document_id: int, db: Session = Depends(get_db)):
    service = DocumentService(db)
    service.get_document(document_id)
    return service.get_chunks(document_id)


@router.delete("/{document_id}")
def delete_document(document_id: int, db: Session = Depends(get_db)):
    """Delete a document with its chunks and embeddings."""
    summary = DocumentService(db).delete_document(document_id)
    AuditService.log(db, action="delete_document", entity_type="document", entity_id=document_id, details=summary)
    db.commit()
    return summary
