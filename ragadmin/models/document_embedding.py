from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from ragadmin.database import Base

class DocumentEmbedding(Base):
    __tablename__ = "document_embeddings"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("processed_documents.id"), index=True, nullable=False)
    chunk_id = Column(Integer, ForeignKey("document_chunks.id"), index=True, nullable=False)
    embedding_vector = Column(JSON, nullable=False)  # list of floats; pgvector is not assumed
    embedding_provider = Column(String, index=True)
    embedding_model = Column(String)
    similarity_threshold = Column(Float)
    embedding_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
