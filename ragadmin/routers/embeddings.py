import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ragadmin.core.limiter import limiter
from ragadmin.database import get_db
from ragadmin.schemas.configuration import ConfigKey
from ragadmin.schemas.embedding import (
    EmbeddingStats,
    EmbeddingTestRequest,
    EmbeddingTestResponse,
    SimilarityMatch,
    SimilaritySearchRequest,
)
from ragadmin.services.audit import AuditService
from ragadmin.services.config_store import ConfigStore
from ragadmin.services.document_service import DocumentService
from ragadmin.services.embedding_service import EmbeddingService, map_config, validate_embedding_config
from ragadmin.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings")


def _configured_service(db: Session):
    store = ConfigStore(db)
    processing = store.get_typed(ConfigKey.DOCUMENT_PROCESSING.value)
    config = map_config(processing, store.secrets)
    return EmbeddingService(config), validate_embedding_config(config), processing


@router.post("/test", response_model=EmbeddingTestResponse)
@limiter.limit("10/minute")
def test_embedding(request: Request, payload: EmbeddingTestRequest, db: Session = Depends(get_db)):
    """Embed a sample text with the stored configuration."""
    service, validation, _ = _configured_service(db)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.status_message)

    result = service.generate_embedding(payload.text)
    return EmbeddingTestResponse(
        provider=result.provider,
        model=result.model,
        dimensions=result.dimensions,
        preview=result.embedding[:5],
        validation=validation,
    )


@router.get("/stats", response_model=EmbeddingStats)
def embedding_stats(db: Session = Depends(get_db)):
    return VectorStore(db).stats()


@router.delete("/documents/{document_id}")
def delete_document_embeddings(document_id: int, db: Session = Depends(get_db)):
    DocumentService(db).get_document(document_id)
    deleted = VectorStore(db).delete_document_embeddings(document_id)
    AuditService.log(
        db,
        action="delete_document_embeddings",
        entity_type="document",
        entity_id=document_id,
        details={"deleted": deleted},
    )
    db.commit()
    return {"document_id": document_id, "deleted": deleted}


@router.delete("")
def clear_embeddings(db: Session = Depends(get_db)):
    deleted = VectorStore(db).clear_all()
    AuditService.log(db, action="clear_embeddings", entity_type="embedding", entity_id=None, details={"deleted": deleted})
    db.commit()
    return {"deleted": deleted}


@router.post("/search", response_model=List[SimilarityMatch])
@limiter.limit("30/minute")
def search_embeddings(request: Request, payload: SimilaritySearchRequest, db: Session = Depends(get_db)):
    """Embed the query and rank stored chunks by cosine similarity."""
    service, validation, processing = _configured_service(db)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.status_message)

    query_embedding = service.generate_embedding(payload.query).embedding
    threshold = payload.similarity_threshold
    if threshold is None:
        threshold = processing.similarity_threshold
    return VectorStore(db).search_similar(query_embedding, threshold, payload.match_count)
