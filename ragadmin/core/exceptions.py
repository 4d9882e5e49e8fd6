from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class ConfigValidationError(AppException):
    """Raised when a configuration value does not match the shape expected for its key."""
    def __init__(self, key: str, errors: list):
        super().__init__(
            message=f"Invalid configuration for '{key}'",
            status_code=422,
            error_code="INVALID_CONFIGURATION",
            details={"key": key, "errors": errors}
        )

class ExtractionError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="EXTRACTION_FAILED",
            details=details
        )

class ExternalServiceError(AppException):
    def __init__(self, message: str, service: str, details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__(
            message=message,
            status_code=502,
            error_code="EXTERNAL_SERVICE_ERROR",
            details={"service": service, **(details or {})}
        )

class EmbeddingError(ExternalServiceError):
    def __init__(self, message: str, provider: str, status: Optional[int] = None):
        self.provider = provider
        self.status = status
        super().__init__(message, service=provider, details={"status": status})
        self.error_code = "EMBEDDING_FAILED"

class GoogleDriveError(ExternalServiceError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, service="google_drive", details=details)
        self.error_code = "GOOGLE_DRIVE_ERROR"

class AccessDeniedError(AppException):
    """Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Invalid or missing admin token"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )
