from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator


class ChunkStrategy(str, Enum):
    FIXED_SIZE = "fixed_size"
    PARAGRAPH = "paragraph"
    SENTENCE = "sentence"
    RECURSIVE = "recursive"
    SEMANTIC = "semantic"


class ChunkResult(BaseModel):
    index: int
    content: str
    start_position: Optional[int] = None
    end_position: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.content)


class ChunkPreviewRequest(BaseModel):
    text: str
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    chunk_strategy: ChunkStrategy = ChunkStrategy.FIXED_SIZE


class ChunkPreviewResponse(BaseModel):
    strategy: ChunkStrategy
    total_chunks: int
    average_size: float
    chunks: List[ChunkResult]

    @model_validator(mode="before")
    @classmethod
    def _fill_totals(cls, data: Any) -> Any:
        if isinstance(data, dict) and "chunks" in data and "total_chunks" not in data:
            chunks = data["chunks"]
            sizes = [len(c.content if isinstance(c, ChunkResult) else c["content"]) for c in chunks]
            data["total_chunks"] = len(chunks)
            data["average_size"] = round(sum(sizes) / len(sizes), 2) if sizes else 0.0
        return data
