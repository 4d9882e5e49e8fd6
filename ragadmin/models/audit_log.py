from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from ragadmin.database import Base

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, index=True, nullable=False)
    entity_type = Column(String, index=True)
    entity_id = Column(String, nullable=True)
    details = Column(JSON, default=dict)
    request_id = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
