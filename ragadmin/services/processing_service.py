import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from ragadmin.core.config import settings
from ragadmin.core.exceptions import ExtractionError, NotFoundError
from ragadmin.models.processed_document import DocumentStatus, ProcessedDocument
from ragadmin.schemas.configuration import ConfigKey, DocumentProcessingConfig
from ragadmin.services.audit import AuditService
from ragadmin.services.base import BaseService
from ragadmin.services.chunking_service import ChunkingService
from ragadmin.services.config_store import ConfigStore
from ragadmin.services.document_service import DocumentService
from ragadmin.services.embedding_service import EmbeddingService, map_config
from ragadmin.services.error_hints import hint_for
from ragadmin.services.hosted_functions import PdfProxyClient
from ragadmin.services.pdf_extraction import PdfTextExtractor, is_pdf_bytes
from ragadmin.services.text_cleaning import extract_plain_text, validate_extracted_content
from ragadmin.services.vector_store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessingProgress:
    document_id: int
    title: str
    stage: str
    progress: int
    chunks_generated: int = 0
    embeddings_generated: int = 0


@dataclass
class ProcessingResult:
    document_id: int
    title: Optional[str]
    success: bool
    chunks_generated: int = 0
    embeddings_generated: int = 0
    error: Optional[str] = None
    hint: Optional[str] = None


ProgressCallback = Callable[[ProcessingProgress], None]


class ProcessingService(BaseService):
    """
    Runs stored documents through extraction, chunking and embedding.

    Documents are handled one at a time with a fixed pause between them so the
    hosted providers are not flooded. A failure is recorded on the document and
    the loop moves on to the next one.
    """

    def __init__(
        self,
        db: Session,
        proxy_client: Optional[PdfProxyClient] = None,
        extractor: Optional[PdfTextExtractor] = None,
        embedding_service: Optional[EmbeddingService] = None,
        batch_delay: Optional[float] = None,
    ):
        super().__init__(db)
        self.documents = DocumentService(db)
        self.vectors = VectorStore(db)
        self.configs = ConfigStore(db)
        self.proxy_client = proxy_client or PdfProxyClient()
        self.extractor = extractor or PdfTextExtractor()
        self._embedding_service = embedding_service
        self.batch_delay = settings.processing_batch_delay_seconds if batch_delay is None else batch_delay

    def _embedding_client(self, config: DocumentProcessingConfig) -> EmbeddingService:
        if self._embedding_service is None:
            self._embedding_service = EmbeddingService(map_config(config, self.configs.secrets))
        return self._embedding_service

    def extract_document_text(self, document: ProcessedDocument) -> str:
        """Stored content first, then the remote URL through the proxy."""
        if document.has_content:
            logger.info(f"Using stored content for document {document.id}")
            return validate_extracted_content(extract_plain_text(document.content), document.title)

        if not document.url:
            raise ExtractionError(f"Document '{document.title}' has no content or URL to extract from")

        data = self.proxy_client.fetch_document(document.url, title=document.title, document_id=document.id)
        if is_pdf_bytes(data):
            result = self.extractor.extract(data)
            if not result.success:
                raise ExtractionError(result.text, details={"attempts": [a.model_dump() for a in result.attempts]})
            text = result.text
        else:
            text = extract_plain_text(data.decode("utf-8", errors="ignore"))

        text = validate_extracted_content(text, document.title)
        self.documents.set_content(document.id, text)
        return text

    def process_document(
        self,
        document_id: int,
        generate_embeddings: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ProcessingResult:
        try:
            document = self.documents.get_document(document_id)
        except NotFoundError as e:
            logger.warning(f"Skipping document {document_id}: not found")
            return ProcessingResult(document_id=document_id, title=None, success=False, error=e.message)
        title = document.title
        chunks_generated = 0
        embeddings_generated = 0

        def report(stage: str, progress: int):
            if progress_callback:
                progress_callback(ProcessingProgress(
                    document_id=document_id,
                    title=title,
                    stage=stage,
                    progress=progress,
                    chunks_generated=chunks_generated,
                    embeddings_generated=embeddings_generated,
                ))

        try:
            logger.info(f"Step 1: Extracting text for document {document_id} ({title})")
            self.documents.update_status(document_id, DocumentStatus.PROCESSING)
            report("extracting", 10)
            text = self.extract_document_text(document)
            report("extracted", 30)

            logger.info(f"Step 2: Chunking document {document_id}")
            config = self.configs.get_typed(ConfigKey.DOCUMENT_PROCESSING.value)
            report("chunking", 40)
            chunks = ChunkingService.from_config(config).split(text)
            if not chunks:
                raise ExtractionError(f"No chunks could be generated from {title}")

            # Old chunks and embeddings stay until the new ones commit together
            self.vectors.delete_document_embeddings(document_id, commit=False)
            self.documents.delete_chunks(document_id, commit=False)
            stored_chunks = self.documents.store_chunks(document_id, chunks, commit=False)
            chunks_generated = len(stored_chunks)
            report("chunked", 60)

            if generate_embeddings:
                logger.info(f"Step 3: Embedding {chunks_generated} chunks for document {document_id}")
                client = self._embedding_client(config)
                report("embedding", 70)
                responses = client.generate_embeddings([c.content for c in stored_chunks])
                for chunk, response in zip(stored_chunks, responses):
                    self.vectors.store_embedding(
                        document_id=document_id,
                        chunk_id=chunk.id,
                        embedding=response.embedding,
                        provider=response.provider,
                        model=response.model,
                        similarity_threshold=config.similarity_threshold,
                        metadata={"chunk_index": chunk.chunk_index, **config.embedding_metadata},
                        commit=False,
                    )
                    embeddings_generated += 1
                report("embedded", 90)

            self.db.commit()

            self.documents.update_status(document_id, DocumentStatus.COMPLETED)
            report("completed", 100)
            logger.info(
                f"Step 4: Document {document_id} completed with {chunks_generated} chunks "
                f"and {embeddings_generated} embeddings"
            )
            return ProcessingResult(
                document_id=document_id,
                title=title,
                success=True,
                chunks_generated=chunks_generated,
                embeddings_generated=embeddings_generated,
            )
        except Exception as e:
            # Any failure ends this document only; the batch continues
            logger.exception(f"Processing failed for document {document_id}")
            self.db.rollback()
            message = getattr(e, "message", None) or str(e) or e.__class__.__name__
            self.documents.update_status(document_id, DocumentStatus.FAILED, error=message)
            report("failed", 100)
            return ProcessingResult(
                document_id=document_id,
                title=title,
                success=False,
                error=message,
                hint=hint_for(message),
            )

    def process_documents(
        self,
        document_ids: Sequence[int],
        generate_embeddings: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[ProcessingResult]:
        logger.info(f"Starting processing pipeline for {len(document_ids)} documents")
        results: List[ProcessingResult] = []
        for position, document_id in enumerate(document_ids):
            if position and self.batch_delay > 0:
                time.sleep(self.batch_delay)
            result = self.process_document(document_id, generate_embeddings, progress_callback)
            results.append(result)
            AuditService.log(
                self.db,
                action="document_processed" if result.success else "document_processing_failed",
                entity_type="document",
                entity_id=document_id,
                details={
                    "chunks": result.chunks_generated,
                    "embeddings": result.embeddings_generated,
                    "error": result.error,
                },
            )
        self.db.commit()

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Processing finished: {succeeded}/{len(results)} documents succeeded")
        return results
