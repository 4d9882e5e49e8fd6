# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    configuration, provider_secret, processed_document,
    document_chunk, document_embedding, audit_log
)

from .configuration import Configuration
from .provider_secret import ProviderSecret
from .processed_document import ProcessedDocument, DocumentStatus
from .document_chunk import DocumentChunk
from .document_embedding import DocumentEmbedding
from .audit_log import AuditLog

__all__ = [
    "Configuration",
    "ProviderSecret",
    "ProcessedDocument",
    "DocumentStatus",
    "DocumentChunk",
    "DocumentEmbedding",
    "AuditLog",
]
