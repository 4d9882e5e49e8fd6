import logging
import time
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from ragadmin.core.config import settings
from ragadmin.core.exceptions import EmbeddingError
from ragadmin.schemas.configuration import DocumentProcessingConfig, EmbeddingProvider
from ragadmin.schemas.embedding import ConfigValidationResult, EmbeddingConfig, EmbeddingResponse
from ragadmin.services.secret_store import (
    EMBEDDING_DEFAULT_SECRET,
    SecretStore,
    embedding_secret_name,
)

logger = logging.getLogger(__name__)

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"
COHERE_EMBED_URL = "https://api.cohere.ai/v1/embed"
HUGGINGFACE_FEATURE_URL = "https://api-inference.huggingface.co/pipeline/feature-extraction/{model}"

DEFAULT_MODELS = {
    EmbeddingProvider.OPENAI: "text-embedding-3-small",
    EmbeddingProvider.COHERE: "embed-english-v3.0",
    EmbeddingProvider.HUGGINGFACE: "sentence-transformers/all-MiniLM-L6-v2",
}

KNOWN_MODELS = {
    EmbeddingProvider.OPENAI: {
        "text-embedding-3-small",
        "text-embedding-3-large",
        "text-embedding-ada-002",
    },
    EmbeddingProvider.COHERE: {
        "embed-english-v3.0",
        "embed-multilingual-v3.0",
        "embed-english-light-v3.0",
        "embed-multilingual-light-v3.0",
    },
    EmbeddingProvider.HUGGINGFACE: {
        "sentence-transformers/all-MiniLM-L6-v2",
        "sentence-transformers/all-mpnet-base-v2",
        "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2",
    },
}


def get_default_model(provider: EmbeddingProvider) -> str:
    return DEFAULT_MODELS.get(EmbeddingProvider(provider), DEFAULT_MODELS[EmbeddingProvider.OPENAI])


def map_config(config: DocumentProcessingConfig, secrets: Optional[SecretStore] = None) -> EmbeddingConfig:
    """
    Build the embedding client settings from the stored document_processing record.
    The provider-specific key takes priority over the general key.
    """
    provider = EmbeddingProvider(config.provider)
    api_key = ""
    if secrets is not None:
        api_key = secrets.first_key(embedding_secret_name(provider.value), EMBEDDING_DEFAULT_SECRET) or ""

    mapped = EmbeddingConfig(
        provider=provider,
        model=config.specific_model_id or get_default_model(provider),
        api_key=api_key,
        batch_size=config.embedding_batch_size,
        similarity_threshold=config.similarity_threshold,
        embedding_metadata=config.embedding_metadata,
        vector_storage=config.vector_storage,
    )
    logger.info(
        f"Mapped embedding config: provider={mapped.provider.value}, model={mapped.model}, "
        f"has_api_key={bool(mapped.api_key)}, batch_size={mapped.batch_size}"
    )
    return mapped


def validate_embedding_config(config: EmbeddingConfig) -> ConfigValidationResult:
    errors: List[str] = []
    warnings: List[str] = []
    provider_name = config.provider.value if config.provider else "unknown"

    if not config.provider:
        errors.append("Provider is required")
    if not config.model or not config.model.strip():
        errors.append(f"Model is required for {provider_name} provider")
    if not config.api_key or not config.api_key.strip():
        errors.append(f"API key is required for {provider_name} provider")
    if config.batch_size <= 0:
        errors.append("Batch size must be greater than 0")

    if config.provider and config.model and config.model not in KNOWN_MODELS.get(config.provider, set()):
        warnings.append(f'Model "{config.model}" may not be a valid {provider_name} embedding model')

    return ConfigValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


class EmbeddingService:
    """Generates embeddings by calling the configured hosted provider."""

    def __init__(self, config: EmbeddingConfig, timeout: Optional[float] = None):
        self.config = config
        self.timeout = timeout or settings.functions.timeout_seconds

    def _post(self, url: str, payload: Dict[str, Any]) -> Any:
        provider = self.config.provider.value
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"{provider} embedding request timed out")
            raise EmbeddingError(f"{provider} embedding request timed out", provider=provider)
        except requests.exceptions.RequestException as e:
            logger.error(f"{provider} embedding request failed: {e}")
            raise EmbeddingError(f"{provider} embedding request failed: {e}", provider=provider)

        if not response.ok:
            detail = response.text
            try:
                body = response.json()
                if isinstance(body, dict):
                    error = body.get("error")
                    detail = (error.get("message") if isinstance(error, dict) else error) or body.get("message") or detail
            except ValueError:
                pass
            logger.error(f"{provider} API error {response.status_code}: {detail}")
            raise EmbeddingError(
                f"{provider} API error: {detail or response.reason}",
                provider=provider,
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise EmbeddingError(f"{provider} returned a non-JSON response", provider=provider)

    def _openai(self, text: str) -> EmbeddingResponse:
        data = self._post(OPENAI_EMBEDDINGS_URL, {"model": self.config.model, "input": text})
        return EmbeddingResponse(
            embedding=data["data"][0]["embedding"],
            model=data.get("model", self.config.model),
            provider=EmbeddingProvider.OPENAI.value,
            usage=data.get("usage"),
        )

    def _cohere(self, text: str) -> EmbeddingResponse:
        data = self._post(COHERE_EMBED_URL, {
            "model": self.config.model,
            "texts": [text],
            "input_type": "search_document",
        })
        return EmbeddingResponse(
            embedding=data["embeddings"][0],
            model=self.config.model,
            provider=EmbeddingProvider.COHERE.value,
        )

    def _huggingface(self, text: str) -> EmbeddingResponse:
        data = self._post(HUGGINGFACE_FEATURE_URL.format(model=self.config.model), {"inputs": text})
        embedding = data[0] if data and isinstance(data[0], list) else data
        return EmbeddingResponse(
            embedding=embedding,
            model=self.config.model,
            provider=EmbeddingProvider.HUGGINGFACE.value,
        )

    def generate_embedding(self, text: str) -> EmbeddingResponse:
        provider = self.config.provider.value
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", provider=provider)
        if not self.config.api_key:
            raise EmbeddingError(f"No API key found for provider: {provider}", provider=provider)

        handlers = {
            EmbeddingProvider.OPENAI: self._openai,
            EmbeddingProvider.COHERE: self._cohere,
            EmbeddingProvider.HUGGINGFACE: self._huggingface,
        }
        start_time = time.time()
        try:
            result = handlers[self.config.provider](text)
        except (KeyError, IndexError, TypeError, ValidationError) as e:
            logger.error(f"Unexpected {provider} response shape: {e}")
            raise EmbeddingError(f"Malformed {provider} embedding response", provider=provider)

        if not result.embedding:
            raise EmbeddingError(f"{provider} returned an empty embedding", provider=provider)
        logger.info(
            f"Generated {result.dimensions}-dim embedding with {provider}/{result.model} "
            f"in {time.time() - start_time:.2f}s"
        )
        return result

    def generate_embeddings(self, texts: List[str]) -> List[EmbeddingResponse]:
        """Embed texts sequentially, in batch_size groups for progress logging."""
        results = []
        batch_size = max(self.config.batch_size, 1)
        for start in range(0, len(texts), batch_size):
            batch = texts[start:start + batch_size]
            results.extend(self.generate_embedding(t) for t in batch)
            logger.info(f"Embedded {min(start + batch_size, len(texts))}/{len(texts)} texts")
        return results
