import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class HostedFunctionSettings(BaseModel):
    base_url: str = Field(default=os.getenv("FUNCTIONS_BASE_URL", "http://localhost:54321/functions/v1"))
    api_key: Optional[str] = Field(default=os.getenv("FUNCTIONS_API_KEY"))
    pdf_proxy: str = "pdf-proxy"
    process_pdf: str = "process-pdf"
    list_drive_files: str = "list-google-drive-files"
    process_drive_documents: str = "process-google-drive-documents"
    timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    retry_attempts: int = int(os.getenv("FUNCTIONS_RETRY_ATTEMPTS", "3"))
    retry_backoff_seconds: float = float(os.getenv("FUNCTIONS_RETRY_BACKOFF_SECONDS", "1"))

    def url_for(self, function_name: str) -> str:
        return f"{self.base_url.rstrip('/')}/{function_name}"

class ExtractionSettings(BaseModel):
    success_threshold: int = int(os.getenv("EXTRACTION_SUCCESS_THRESHOLD", "100"))
    minimum_plausible_length: int = int(os.getenv("EXTRACTION_MINIMUM_LENGTH", "50"))
    use_structural_parser: bool = os.getenv("EXTRACTION_STRUCTURAL_PARSER", "true").lower() == "true"
    max_pages: int = int(os.getenv("EXTRACTION_MAX_PAGES", "0"))

class Config(BaseModel):
    app_name: str = "RAG Admin Backend"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./ragadmin.db")

    # Admin access. Empty disables the header check.
    admin_token: Optional[str] = os.getenv("ADMIN_API_TOKEN") or None

    # External collaborators
    functions: HostedFunctionSettings = HostedFunctionSettings()
    extraction: ExtractionSettings = ExtractionSettings()

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Processing
    processing_batch_delay_seconds: float = float(os.getenv("PROCESSING_BATCH_DELAY_SECONDS", "1.0"))
    connection_history_size: int = int(os.getenv("CONNECTION_HISTORY_SIZE", "20"))
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "50"))

    encryption_key: str = os.getenv("ENCRYPTION_KEY", "dev-only-key-oX_fC_g-l7-W_m_C_l-k7-W_m_C_l-k7-W_==")

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.encryption_key:
        _critical_missing.append("ENCRYPTION_KEY")
    if not settings.admin_token:
        _critical_missing.append("ADMIN_API_TOKEN")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.encryption_key:
        _logger.warning("Using insecure default ENCRYPTION_KEY, only acceptable in development.")
