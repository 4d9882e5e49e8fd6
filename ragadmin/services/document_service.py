import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ragadmin.core.exceptions import NotFoundError
from ragadmin.models.document_chunk import DocumentChunk
from ragadmin.models.processed_document import DocumentStatus, ProcessedDocument
from ragadmin.schemas.chunking import ChunkResult
from ragadmin.services.base import BaseService
from ragadmin.services.vector_store import VectorStore

logger = logging.getLogger(__name__)


class DocumentService(BaseService):
    """Registry of processed documents and their chunks."""

    def create_document(
        self,
        title: str,
        source_type: str = "upload",
        source_id: Optional[str] = None,
        mime_type: Optional[str] = None,
        url: Optional[str] = None,
        content: Optional[str] = None,
    ) -> ProcessedDocument:
        document = ProcessedDocument(
            title=title,
            source_type=source_type,
            source_id=source_id,
            mime_type=mime_type,
            url=url,
            content=content,
            status=DocumentStatus.PENDING,
        )
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)
        logger.info(f"Registered document {document.id} ({title}) from {source_type}")
        return document

    def get_document(self, document_id: int) -> ProcessedDocument:
        document = self.db.get(ProcessedDocument, document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    def list_documents(self, status: Optional[DocumentStatus] = None) -> List[ProcessedDocument]:
        query = self.db.query(ProcessedDocument)
        if status is not None:
            query = query.filter(ProcessedDocument.status == status)
        return query.order_by(ProcessedDocument.created_at.desc(), ProcessedDocument.id.desc()).all()

    def update_status(
        self,
        document_id: int,
        status: DocumentStatus,
        error: Optional[str] = None,
    ) -> ProcessedDocument:
        document = self.get_document(document_id)
        document.status = status
        document.error = error
        if status == DocumentStatus.COMPLETED:
            document.processed_at = datetime.now(timezone.utc)
        self.db.commit()
        return document

    def set_content(self, document_id: int, content: str) -> ProcessedDocument:
        document = self.get_document(document_id)
        document.content = content
        self.db.commit()
        return document

    def _reset(self, documents: Sequence[ProcessedDocument]) -> int:
        for document in documents:
            document.status = DocumentStatus.PENDING
            document.error = None
            document.processed_at = None
        self.db.commit()
        return len(documents)

    def reset_documents(self, document_ids: Sequence[int]) -> int:
        """Put the given documents back to pending so they can be processed again."""
        documents = (
            self.db.query(ProcessedDocument)
            .filter(ProcessedDocument.id.in_(list(document_ids)))
            .all()
        )
        count = self._reset(documents)
        logger.info(f"Reset {count} documents to pending")
        return count

    def reset_failed_documents(self) -> int:
        documents = (
            self.db.query(ProcessedDocument)
            .filter(ProcessedDocument.status == DocumentStatus.FAILED)
            .all()
        )
        count = self._reset(documents)
        logger.info(f"Reset {count} failed documents to pending")
        return count

    def store_chunks(
        self, document_id: int, chunks: Sequence[ChunkResult], commit: bool = True
    ) -> List[DocumentChunk]:
        """
        Insert all chunks of a document in one transaction.
        With commit=False the rows are only flushed so the caller can commit them
        together with the embeddings.
        """
        records = [
            DocumentChunk(
                document_id=document_id,
                chunk_index=chunk.index,
                content=chunk.content,
                start_position=chunk.start_position,
                end_position=chunk.end_position,
                chunk_metadata=dict(chunk.metadata),
            )
            for chunk in chunks
        ]
        self.db.add_all(records)
        if commit:
            self.db.commit()
        else:
            self.db.flush()
        logger.info(f"Stored {len(records)} chunks for document {document_id}")
        return records

    def get_chunks(self, document_id: int) -> List[DocumentChunk]:
        return (
            self.db.query(DocumentChunk)
            .filter(DocumentChunk.document_id == document_id)
            .order_by(DocumentChunk.chunk_index)
            .all()
        )

    def delete_chunks(self, document_id: int, commit: bool = True) -> int:
        deleted = (
            self.db.query(DocumentChunk)
            .filter(DocumentChunk.document_id == document_id)
            .delete(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return deleted

    def delete_document(self, document_id: int) -> dict:
        """
        Delete a document with its dependents.
        No FK cascade is configured, so embeddings go first, then chunks, then the document.
        """
        document = self.get_document(document_id)
        embeddings = VectorStore(self.db).delete_document_embeddings(document_id, commit=False)
        chunks = self.delete_chunks(document_id, commit=False)
        self.db.delete(document)
        self.db.commit()
        logger.info(
            f"Deleted document {document_id} with {chunks} chunks and {embeddings} embeddings"
        )
        return {"document_id": document_id, "chunks_deleted": chunks, "embeddings_deleted": embeddings}
