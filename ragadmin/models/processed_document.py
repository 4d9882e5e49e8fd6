import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from ragadmin.database import Base

class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

class ProcessedDocument(Base):
    __tablename__ = "processed_documents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    source_id = Column(String, index=True, nullable=True)
    source_type = Column(String, default="upload")
    mime_type = Column(String, nullable=True)
    url = Column(String, nullable=True)
    status = Column(
        Enum(DocumentStatus, values_callable=lambda e: [m.value for m in e]),
        default=DocumentStatus.PENDING,
        nullable=False,
        index=True,
    )
    error = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())
