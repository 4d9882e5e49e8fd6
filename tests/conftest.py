import pytest
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["EXTRACTION_STRUCTURAL_PARSER"] = "false"
os.environ["FUNCTIONS_BASE_URL"] = "http://functions.test/v1"
os.environ["FUNCTIONS_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["PROCESSING_BATCH_DELAY_SECONDS"] = "0"
os.environ.pop("ADMIN_API_TOKEN", None)

from ragadmin.database import Base, get_db
from ragadmin.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite needs explicit BEGIN for SAVEPOINT-based test isolation
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Clean database session per test; commits land in a savepoint that is rolled back."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else ("" if payload is None else str(payload))
        self.reason = "OK" if status_code < 400 else "Error"

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self):
        import requests
        if not self.ok:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def text_pdf():
    """A small uncompressed PDF whose text lives in BT/ET blocks."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n"
        b"3 0 obj\n<< /Type /Page /Parent 2 0 R /Contents 4 0 R >>\nendobj\n"
        b"4 0 obj\n<< /Length 260 >>\nstream\n"
        b"BT\n/F1 12 Tf\n72 712 Td\n"
        b"(Retrieval pipelines depend on clean text extraction from uploaded documents.) Tj\n"
        b"0 -14 Td\n"
        b"(Each paragraph is split into chunks before embeddings are generated.) Tj\n"
        b"ET\n"
        b"endstream\nendobj\n"
        b"%%EOF"
    )


@pytest.fixture
def image_pdf():
    """A PDF with a single binary image stream and no text."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /XObject /Subtype /Image /Filter /DCTDecode /Length 64 >>\nstream\n"
        + bytes(range(0x80, 0xC0))
        + b"\nendstream\nendobj\n%%EOF"
    )
