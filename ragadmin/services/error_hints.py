from enum import Enum


class ErrorCategory(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    ACCESS = "access"
    MALFORMED_PDF = "malformed_pdf"
    GOOGLE_DRIVE = "google_drive"
    UNKNOWN = "unknown"


# Checked in order; the first category with a matching substring wins
_CATEGORY_MARKERS = [
    (ErrorCategory.TIMEOUT, ("timeout", "timed out")),
    (ErrorCategory.GOOGLE_DRIVE, ("google drive", "drive.google.com", "alt=media")),
    (ErrorCategory.ACCESS, ("access denied", "permission", "forbidden", "403", "401", "unauthorized")),
    (ErrorCategory.MALFORMED_PDF, ("invalid pdf", "not a valid pdf", "malformed", "corrupt", "pdf header", "worker")),
    (ErrorCategory.NETWORK, ("network", "failed to fetch", "connection", "econnrefused", "dns", "unreachable")),
]

HINTS = {
    ErrorCategory.NETWORK: "Network issue detected. Check your connection and that the PDF proxy is reachable, then retry.",
    ErrorCategory.TIMEOUT: "The request timed out. Large documents may need several attempts or extracting fewer pages.",
    ErrorCategory.ACCESS: "Access denied. Make sure the document is shared publicly or with the service account.",
    ErrorCategory.MALFORMED_PDF: "The file could not be parsed as a PDF. It may be corrupted, encrypted, or image-only.",
    ErrorCategory.GOOGLE_DRIVE: "Google Drive could not serve the file. Use a direct download link (alt=media) and check sharing settings.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred. Retry the operation or check the service logs.",
}


def categorize_error(message: str) -> ErrorCategory:
    lowered = (message or "").lower()
    for category, markers in _CATEGORY_MARKERS:
        if any(marker in lowered for marker in markers):
            return category
    return ErrorCategory.UNKNOWN


def hint_for(message: str) -> str:
    return HINTS[categorize_error(message)]
