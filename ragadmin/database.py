from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from ragadmin.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(DATABASE_URL)
else:
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Session Provider: Provides a database session per request.
    Transaction management is handled explicitly in the Service Layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Registers all models and creates the schema.
    Called once from the application lifespan.
    """
    from ragadmin.models import (  # noqa: F401
        configuration, provider_secret, processed_document,
        document_chunk, document_embedding, audit_log
    )
    Base.metadata.create_all(bind=engine)
