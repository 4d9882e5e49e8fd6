import logging
from typing import Dict, List, Optional

import numpy as np
from sqlalchemy import func

from ragadmin.models.document_chunk import DocumentChunk
from ragadmin.models.document_embedding import DocumentEmbedding
from ragadmin.models.processed_document import ProcessedDocument
from ragadmin.services.base import BaseService

logger = logging.getLogger(__name__)


def cosine_similarity(vec1: List[float], vec2: List[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    a = np.asarray(vec1, dtype=float)
    b = np.asarray(vec2, dtype=float)
    norm1 = np.linalg.norm(a)
    norm2 = np.linalg.norm(b)
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(a, b) / (norm1 * norm2))


class VectorStore(BaseService):
    """Stores chunk embeddings and answers cosine-similarity queries over them."""

    def store_embedding(
        self,
        document_id: int,
        chunk_id: int,
        embedding: List[float],
        provider: str,
        model: str,
        similarity_threshold: float,
        metadata: Optional[dict] = None,
        commit: bool = True,
    ) -> DocumentEmbedding:
        record = DocumentEmbedding(
            document_id=document_id,
            chunk_id=chunk_id,
            embedding_vector=[float(v) for v in embedding],
            embedding_provider=provider,
            embedding_model=model,
            similarity_threshold=similarity_threshold,
            embedding_metadata=metadata or {},
        )
        self.db.add(record)
        if commit:
            self.db.commit()
            self.db.refresh(record)
        else:
            self.db.flush()
        return record

    def get_document_embeddings(self, document_id: int) -> List[DocumentEmbedding]:
        return (
            self.db.query(DocumentEmbedding)
            .filter(DocumentEmbedding.document_id == document_id)
            .order_by(DocumentEmbedding.id)
            .all()
        )

    def delete_document_embeddings(self, document_id: int, commit: bool = True) -> int:
        deleted = (
            self.db.query(DocumentEmbedding)
            .filter(DocumentEmbedding.document_id == document_id)
            .delete(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        logger.info(f"Deleted {deleted} embeddings for document {document_id}")
        return deleted

    def clear_all(self) -> int:
        deleted = self.db.query(DocumentEmbedding).delete(synchronize_session=False)
        self.db.commit()
        logger.warning(f"Cleared all embeddings ({deleted} rows)")
        return deleted

    def count_by_provider(self) -> Dict[str, int]:
        rows = (
            self.db.query(DocumentEmbedding.embedding_provider, func.count(DocumentEmbedding.id))
            .group_by(DocumentEmbedding.embedding_provider)
            .all()
        )
        return {provider or "unknown": count for provider, count in rows}

    def stats(self) -> dict:
        total = self.db.query(func.count(DocumentEmbedding.id)).scalar() or 0
        unique_documents = (
            self.db.query(func.count(func.distinct(DocumentEmbedding.document_id))).scalar() or 0
        )
        providers = sorted(
            p for (p,) in self.db.query(DocumentEmbedding.embedding_provider).distinct() if p
        )
        models = sorted(
            m for (m,) in self.db.query(DocumentEmbedding.embedding_model).distinct() if m
        )
        return {
            "total_embeddings": total,
            "unique_documents": unique_documents,
            "providers": providers,
            "models": models,
            "by_provider": self.count_by_provider(),
        }

    def search_similar(
        self,
        query_embedding: List[float],
        similarity_threshold: float,
        match_count: int = 10,
    ) -> List[dict]:
        """
        Rank stored embeddings by cosine similarity to the query.

        Results below the threshold are dropped. Vectors whose dimension differs
        from the query (another model) are skipped.
        """
        rows = (
            self.db.query(DocumentEmbedding, DocumentChunk.content, ProcessedDocument.title)
            .join(DocumentChunk, DocumentChunk.id == DocumentEmbedding.chunk_id)
            .join(ProcessedDocument, ProcessedDocument.id == DocumentEmbedding.document_id)
            .all()
        )

        query_dim = len(query_embedding)
        results = []
        skipped = 0
        for embedding, content, title in rows:
            vector = embedding.embedding_vector or []
            if len(vector) != query_dim:
                skipped += 1
                continue
            similarity = cosine_similarity(query_embedding, vector)
            if similarity >= similarity_threshold:
                results.append({
                    "embedding_id": embedding.id,
                    "document_id": embedding.document_id,
                    "chunk_id": embedding.chunk_id,
                    "document_title": title,
                    "content": content,
                    "similarity": similarity,
                })

        if skipped:
            logger.info(f"Skipped {skipped} embeddings with a dimension other than {query_dim}")
        results.sort(key=lambda x: x["similarity"], reverse=True)
        return results[:match_count]
