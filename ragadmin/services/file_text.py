import io
import logging
import os
import zipfile
from typing import Optional, Tuple

import docx
from docx.opc.exceptions import PackageNotFoundError

from ragadmin.core.exceptions import ExtractionError
from ragadmin.schemas.extraction import ExtractionResult
from ragadmin.services.pdf_extraction import PdfTextExtractor
from ragadmin.services.text_cleaning import extract_plain_text

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt", ".csv", ".md"}

MIME_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".md": "text/markdown",
}


def validate_filename(filename: Optional[str]) -> Tuple[bool, str]:
    """Validate an uploaded file name by extension."""
    file_ext = os.path.splitext(filename or "")[1].lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        return False, f"File type {file_ext or '(none)'} not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
    return True, ""


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(os.path.splitext(filename)[1].lower(), "application/octet-stream")


def extract_docx_text(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ExtractionError(f"Could not read Word document: {e}")
    return "\n".join(p.text for p in document.paragraphs).strip()


def extract_file_text(
    data: bytes,
    filename: str,
    extractor: Optional[PdfTextExtractor] = None,
) -> ExtractionResult:
    """Extract text from an uploaded file based on its extension."""
    file_ext = os.path.splitext(filename)[1].lower()
    logger.info(f"Extracting text from {filename} ({len(data)} bytes)")

    if file_ext == ".pdf":
        return (extractor or PdfTextExtractor()).extract(data)

    if file_ext == ".docx":
        text = extract_docx_text(data)
        strategy = "docx"
    else:
        text = extract_plain_text(data.decode("utf-8", errors="ignore")).strip()
        strategy = "plain_text"

    return ExtractionResult(
        success=bool(text),
        text=text,
        strategy=strategy,
        char_count=len(text),
    )
