from typing import List, Optional
from pydantic import BaseModel, Field


class StrategyAttempt(BaseModel):
    name: str
    char_count: int = 0


class ExtractionResult(BaseModel):
    success: bool
    text: str
    strategy: Optional[str] = None
    char_count: int = 0
    page_count: Optional[int] = None
    attempts: List[StrategyAttempt] = Field(default_factory=list)
    hint: Optional[str] = None


class UrlExtractionRequest(BaseModel):
    url: str
    title: Optional[str] = None
    document_id: Optional[int] = None
    store_in_database: bool = False


class UrlValidationRequest(BaseModel):
    url: str


class UrlValidationResponse(BaseModel):
    is_valid: bool
    message: Optional[str] = None
    converted_url: Optional[str] = None
    was_converted: bool = False


class ConnectionEntry(BaseModel):
    timestamp: float
    ok: bool
    error: Optional[str] = None


class ProxyStatusResponse(BaseModel):
    connected: bool
    stability: float
    stable: bool
    last_error: Optional[str] = None
    history: List[ConnectionEntry] = Field(default_factory=list)
