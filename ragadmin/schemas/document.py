from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ragadmin.models.processed_document import DocumentStatus


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1)
    source_type: str = "url"
    source_id: Optional[str] = None
    mime_type: Optional[str] = "application/pdf"
    url: Optional[str] = None
    content: Optional[str] = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    source_id: Optional[str] = None
    source_type: Optional[str] = None
    mime_type: Optional[str] = None
    url: Optional[str] = None
    status: DocumentStatus
    error: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    has_content: bool = False


class ChunkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    chunk_index: int
    content: str
    start_position: Optional[int] = None
    end_position: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("chunk_metadata", "metadata"))


class DocumentIdsRequest(BaseModel):
    document_ids: List[int] = Field(min_length=1)


class ProcessDocumentsRequest(DocumentIdsRequest):
    generate_embeddings: bool = True


class ResetResponse(BaseModel):
    reset: int


class ProcessingResultResponse(BaseModel):
    document_id: int
    title: Optional[str] = None
    success: bool
    chunks_generated: int = 0
    embeddings_generated: int = 0
    error: Optional[str] = None
    hint: Optional[str] = None
