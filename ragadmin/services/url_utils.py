import re
from typing import NamedTuple, Optional, Tuple
from urllib.parse import urlparse

DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}&alt=media"

DRIVE_ID_PATTERNS = [
    re.compile(r"/file/d/([^/?#]+)"),
    re.compile(r"[?&]id=([^&#]+)"),
    re.compile(r"document/d/([^/?#]+)"),
    # Last resort: anything that looks like a Drive file id
    re.compile(r"([a-zA-Z0-9_-]{25,})"),
]


class UrlValidation(NamedTuple):
    is_valid: bool
    message: Optional[str]


def is_google_drive_url(url: str) -> bool:
    return "drive.google.com" in url or "docs.google.com" in url


def convert_google_drive_url(url: str) -> Tuple[str, bool]:
    """
    Turn a Google Drive share link into a direct download link.

    Returns (url, was_converted). Non-Drive URLs and URLs that already request
    alt=media are returned unchanged, so the conversion is idempotent.
    """
    if not url or not is_google_drive_url(url):
        return url, False
    if "alt=media" in url:
        return url, False

    for pattern in DRIVE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return DRIVE_DOWNLOAD_URL.format(file_id=match.group(1)), True
    return url, False


def _is_well_formed(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_pdf_url(url: str) -> UrlValidation:
    if not url or not url.strip():
        return UrlValidation(False, "URL is empty")
    if not _is_well_formed(url):
        return UrlValidation(False, "Invalid URL format")

    if is_google_drive_url(url):
        if "alt=media" not in url:
            return UrlValidation(
                False,
                "Google Drive links must be direct downloads with alt=media. "
                "Convert the share link before fetching.",
            )
        return UrlValidation(True, None)

    lowered = url.lower()
    if lowered.endswith(".pdf") or "pdf" in lowered:
        return UrlValidation(True, None)

    return UrlValidation(
        False,
        "URL doesn't appear to point to a PDF document. The URL should end with .pdf "
        "or be a properly formatted Google Drive link.",
    )
