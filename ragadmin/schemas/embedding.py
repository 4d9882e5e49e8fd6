from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ragadmin.schemas.configuration import EmbeddingProvider


class EmbeddingConfig(BaseModel):
    provider: EmbeddingProvider = EmbeddingProvider.OPENAI
    model: str
    api_key: str = Field(default="", repr=False)
    batch_size: int = 10
    similarity_threshold: float = 0.7
    embedding_metadata: Dict[str, Any] = Field(default_factory=dict)
    vector_storage: str = "database"


class ConfigValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def status_message(self) -> str:
        if self.is_valid:
            if self.warnings:
                return f"Configuration is valid but has warnings: {', '.join(self.warnings)}"
            return "Configuration is valid and ready for use"
        return f"Configuration is invalid: {', '.join(self.errors)}"


class EmbeddingResponse(BaseModel):
    embedding: List[float]
    model: str
    provider: str
    usage: Optional[Dict[str, Any]] = None

    @property
    def dimensions(self) -> int:
        return len(self.embedding)


class EmbeddingTestRequest(BaseModel):
    text: str = Field(min_length=1)


class EmbeddingTestResponse(BaseModel):
    provider: str
    model: str
    dimensions: int
    preview: List[float]
    validation: ConfigValidationResult


class EmbeddingStats(BaseModel):
    total_embeddings: int
    unique_documents: int
    providers: List[str]
    models: List[str]
    by_provider: Dict[str, int] = Field(default_factory=dict)


class SimilaritySearchRequest(BaseModel):
    query: str = Field(min_length=1)
    similarity_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    match_count: int = Field(default=10, gt=0, le=100)


class SimilarityMatch(BaseModel):
    embedding_id: int
    document_id: int
    chunk_id: int
    document_title: Optional[str] = None
    content: Optional[str] = None
    similarity: float
