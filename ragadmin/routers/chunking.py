from fastapi import APIRouter, HTTPException

from ragadmin.schemas.chunking import ChunkPreviewRequest, ChunkPreviewResponse
from ragadmin.services.chunking_service import ChunkingService

router = APIRouter(prefix="/chunking")


@router.post("/preview", response_model=ChunkPreviewResponse)
def preview_chunks(payload: ChunkPreviewRequest):
    """Split text with the given settings without storing anything."""
    try:
        splitter = ChunkingService(payload.chunk_size, payload.chunk_overlap, payload.chunk_strategy)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ChunkPreviewResponse(strategy=payload.chunk_strategy, chunks=splitter.split(payload.text))
