from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ragadmin.database import Base

class ProviderSecret(Base):
    """API key for an external provider, stored Fernet-encrypted."""
    __tablename__ = "provider_secrets"

    id = Column(Integer, primary_key=True, index=True)
    provider = Column(String, unique=True, index=True, nullable=False)
    encrypted_key = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
