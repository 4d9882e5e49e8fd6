import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator
from pydantic.alias_generators import to_camel

from ragadmin.schemas.chunking import ChunkStrategy


class ConfigKey(str, Enum):
    DOCUMENT_PROCESSING = "document_processing"
    CHAT_SETTINGS = "chat_settings"
    SEARCH_SETTINGS = "search_settings"
    GOOGLE_DRIVE_INTEGRATION = "google_drive_integration"
    ALLOW_PUBLIC_REGISTRATION = "allow_public_registration"


class EmbeddingProvider(str, Enum):
    OPENAI = "openai"
    COHERE = "cohere"
    HUGGINGFACE = "huggingface"


class _CamelModel(BaseModel):
    """The admin UI sends camelCase keys; stored values keep that shape."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


DEFAULT_CUSTOM_CONFIGURATION = '{\n  "advanced": {\n    "cache": true\n  }\n}'


class DocumentProcessingConfig(_CamelModel):
    provider: EmbeddingProvider = EmbeddingProvider.OPENAI
    specific_model_id: Optional[str] = None
    embedding_model: str = "openai"
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    chunk_strategy: ChunkStrategy = ChunkStrategy.FIXED_SIZE
    storage_path: str = "/data/documents"
    custom_configuration: str = DEFAULT_CUSTOM_CONFIGURATION
    embedding_batch_size: int = Field(default=10, gt=0)
    similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    vector_storage: str = "database"
    embedding_metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("custom_configuration")
    @classmethod
    def _custom_configuration_is_json(cls, value: str) -> str:
        if value and value.strip():
            try:
                json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"customConfiguration must be valid JSON: {e.msg}")
        return value


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant answering questions based on the provided context. "
    "Always use the document content when available and provide comprehensive, detailed responses."
)


class ChatSettingsConfig(_CamelModel):
    chat_provider: str = "openai"
    chat_model: str = "gpt-4o-mini"
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    chat_max_tokens: int = Field(default=2000, gt=0)
    chat_system_prompt: str = DEFAULT_SYSTEM_PROMPT


class SearchSettingsConfig(_CamelModel):
    factual_question_thresholds: List[float] = Field(default_factory=lambda: [0.1, 0.2, 0.3, 0.4, 0.5])
    summary_request_thresholds: List[float] = Field(default_factory=lambda: [0.1, 0.2, 0.3, 0.4, 0.5])
    standard_thresholds: List[float] = Field(default_factory=lambda: [0.15, 0.25, 0.35, 0.45])

    factual_question_match_count: int = Field(default=25, gt=0)
    summary_match_count: int = Field(default=25, gt=0)
    extensive_summary_match_count: int = Field(default=30, gt=0)
    standard_match_count: int = Field(default=15, gt=0)

    factual_question_content_length: int = 3000
    summary_content_length: int = 1800
    extensive_summary_content_length: int = 2500
    standard_content_length: int = 1500

    factual_question_chunks_per_document: int = 8
    summary_chunks_per_document: int = 5
    extensive_summary_chunks_per_document: int = 8
    standard_chunks_per_document: int = 4

    factual_question_total_chunks_limit: int = 20
    summary_total_chunks_limit: int = 15
    extensive_summary_total_chunks_limit: int = 20
    standard_total_chunks_limit: int = 12

    enhanced_content_search_limit: int = 5
    title_search_min_word_length: int = 2
    content_search_batch_size: int = 2

    @field_validator(
        "factual_question_thresholds", "summary_request_thresholds", "standard_thresholds"
    )
    @classmethod
    def _thresholds_in_range(cls, value: List[float]) -> List[float]:
        if any(t < 0 or t > 1 for t in value):
            raise ValueError("similarity thresholds must be between 0 and 1")
        return value


class GoogleDriveIntegrationConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client_email: Optional[str] = None
    private_key: Optional[str] = None
    folder_id: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.client_email and self.private_key)


class PublicRegistrationConfig(RootModel[bool]):
    root: bool = False


CONFIG_MODELS: Dict[str, Type[BaseModel]] = {
    ConfigKey.DOCUMENT_PROCESSING.value: DocumentProcessingConfig,
    ConfigKey.CHAT_SETTINGS.value: ChatSettingsConfig,
    ConfigKey.SEARCH_SETTINGS.value: SearchSettingsConfig,
    ConfigKey.GOOGLE_DRIVE_INTEGRATION.value: GoogleDriveIntegrationConfig,
    ConfigKey.ALLOW_PUBLIC_REGISTRATION.value: PublicRegistrationConfig,
}


class ConfigurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: Any = None
    updated_at: Optional[datetime] = None


class ConfigurationUpdate(BaseModel):
    value: Any


class SecretUpdate(BaseModel):
    api_key: str = Field(min_length=1)


class SecretInfo(BaseModel):
    provider: str
    hint: str
    updated_at: Optional[datetime] = None
