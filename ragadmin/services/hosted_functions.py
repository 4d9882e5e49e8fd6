import base64
import binascii
import logging
import uuid
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ragadmin.core.config import settings
from ragadmin.core.exceptions import ExternalServiceError, GoogleDriveError
from ragadmin.core.logging import request_id_var
from ragadmin.schemas.configuration import GoogleDriveIntegrationConfig
from ragadmin.schemas.google_drive import DriveFile, ProcessKickoff
from ragadmin.services.connection_monitor import ConnectionHistory, ConnectionRecord
from ragadmin.services.error_hints import hint_for
from ragadmin.services.url_utils import convert_google_drive_url, is_google_drive_url

logger = logging.getLogger(__name__)

MISSING_DRIVE_CREDENTIALS = "Missing required Google Drive credentials. Please update your configuration."


def _is_transient(error: BaseException) -> bool:
    """Network failures and 5xx replies may succeed on a later attempt; 4xx and bad JSON will not."""
    if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return error.response.status_code >= 500
    return False


def _headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Cache-Control": "no-cache, no-store",
    }
    if settings.functions.api_key:
        headers["Authorization"] = f"Bearer {settings.functions.api_key}"
    if extra:
        headers.update(extra)
    return headers


@retry(
    stop=stop_after_attempt(settings.functions.retry_attempts),
    wait=wait_exponential(multiplier=settings.functions.retry_backoff_seconds, min=0, max=8),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)
def call_function(name: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
    """POST a JSON payload to a hosted function and return its JSON reply."""
    url = settings.functions.url_for(name)
    logger.info(f"Calling hosted function: {name}")
    response = requests.post(
        url,
        json=payload,
        headers=_headers(headers),
        timeout=settings.functions.timeout_seconds,
    )
    if not response.ok:
        logger.warning(f"{name} returned {response.status_code}: {response.text[:200]}")
    response.raise_for_status()
    return response.json()


def _describe(error: Exception) -> str:
    if isinstance(error, requests.exceptions.Timeout):
        return "The request timed out. The document may be too large or the server is not responding."
    if isinstance(error, requests.exceptions.ConnectionError):
        return "Network error: Unable to connect to the proxy service."
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return f"Proxy error: {error.response.status_code} - {error.response.text or 'Unknown error'}"
    return str(error)


class PdfProxyClient:
    """Fetches remote documents through the pdf-proxy function."""

    def __init__(self, history: Optional[ConnectionHistory] = None):
        self.history = history if history is not None else connection_history

    def fetch_document(
        self,
        url: str,
        title: Optional[str] = None,
        document_id: Optional[int] = None,
        store_in_database: bool = False,
    ) -> bytes:
        if not url:
            raise ValueError("URL is required")

        if is_google_drive_url(url):
            converted, was_converted = convert_google_drive_url(url)
            if was_converted:
                logger.info(f"Google Drive URL converted to direct download: {converted}")
            url = converted

        payload: Dict[str, Any] = {"url": url, "action": "fetch_document"}
        if title:
            payload["title"] = title
        if document_id is not None:
            payload["documentId"] = document_id
        if store_in_database:
            payload["storeInDatabase"] = True

        try:
            data = call_function(settings.functions.pdf_proxy, payload)
        except (requests.exceptions.RequestException, ValueError) as e:
            message = _describe(e)
            logger.error(f"Proxy fetch failed for {title or url}: {message}")
            raise ExternalServiceError(
                message,
                service=settings.functions.pdf_proxy,
                details={"url": url, "hint": hint_for(message)},
            )

        encoded = data.get("data") if isinstance(data, dict) else data
        if isinstance(data, dict) and data.get("error"):
            raise ExternalServiceError(
                str(data["error"]),
                service=settings.functions.pdf_proxy,
                details={"url": url, "hint": hint_for(str(data["error"]))},
            )
        if not isinstance(encoded, str) or not encoded:
            raise ExternalServiceError("No data received from proxy", service=settings.functions.pdf_proxy)

        try:
            content = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ExternalServiceError(
                f"Failed to decode document data: {e}",
                service=settings.functions.pdf_proxy,
            )
        logger.info(f"Fetched {len(content)} bytes for {title or url}")
        return content

    def connection_test(self) -> ConnectionRecord:
        """Probe the proxy and record the outcome in the connection history."""
        try:
            data = call_function(settings.functions.pdf_proxy, {"action": "connection_test"})
        except (requests.exceptions.RequestException, ValueError) as e:
            message = _describe(e)
            logger.warning(f"Proxy connection test failed: {message}")
            return self.history.record(ok=False, error=message)

        if isinstance(data, dict) and data.get("status") == "connected":
            return self.history.record(ok=True)

        message = f"Unexpected connection test reply: {data!r}"[:300]
        logger.warning(message)
        return self.history.record(ok=False, error=message)


class ServerPdfClient:
    """Server-side extraction through the process-pdf function."""

    def extract(self, pdf_bytes: bytes, options: Optional[Dict[str, Any]] = None) -> str:
        correlation_id = request_id_var.get() or str(uuid.uuid4())
        payload = {
            "pdfBase64": base64.b64encode(pdf_bytes).decode("ascii"),
            "options": options or {},
        }
        try:
            data = call_function(
                settings.functions.process_pdf,
                payload,
                headers={"X-Correlation-Id": correlation_id},
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            message = _describe(e)
            logger.error(f"Server extraction failed [{correlation_id}]: {message}")
            raise ExternalServiceError(
                message,
                service=settings.functions.process_pdf,
                details={"correlation_id": correlation_id, "hint": hint_for(message)},
            )

        if not isinstance(data, dict) or data.get("status") == "error":
            error = data.get("error") if isinstance(data, dict) else "Malformed reply"
            raise ExternalServiceError(
                f"Server extraction failed: {error}",
                service=settings.functions.process_pdf,
                details={"correlation_id": correlation_id},
            )
        text = data.get("extractedText") or data.get("text") or ""
        logger.info(f"Server extraction returned {len(text)} characters [{correlation_id}]")
        return text


class GoogleDriveClient:
    """Lists and imports Drive files through the hosted Drive functions."""

    @staticmethod
    def _credentials(config: GoogleDriveIntegrationConfig) -> Dict[str, str]:
        if not config.is_complete:
            raise GoogleDriveError(MISSING_DRIVE_CREDENTIALS)
        return {"client_email": config.client_email, "private_key": config.private_key}

    def _invoke(self, name: str, payload: Dict[str, Any]) -> Any:
        try:
            data = call_function(name, payload)
        except (requests.exceptions.RequestException, ValueError) as e:
            message = _describe(e)
            logger.error(f"Google Drive function {name} failed: {message}")
            raise GoogleDriveError(message, details={"function": name, "hint": hint_for(message)})
        if isinstance(data, dict) and data.get("error"):
            raise GoogleDriveError(f"Error from Google Drive: {data['error']}", details={"function": name})
        return data

    def list_files(self, config: GoogleDriveIntegrationConfig) -> List[DriveFile]:
        payload = {**self._credentials(config), "folder_id": config.folder_id or ""}
        data = self._invoke(settings.functions.list_drive_files, payload)
        files = data.get("files") if isinstance(data, dict) else None
        result = [DriveFile.model_validate(f) for f in files or []]
        logger.info(f"Listed {len(result)} Google Drive files")
        return result

    def process_documents(self, config: GoogleDriveIntegrationConfig, document_ids: List[str]) -> ProcessKickoff:
        if not document_ids:
            return ProcessKickoff(success=False, message="No documents selected")
        payload = {**self._credentials(config), "documentIds": list(document_ids)}
        self._invoke(settings.functions.process_drive_documents, payload)
        return ProcessKickoff(
            success=True,
            message=f"Processing {len(document_ids)} document(s). This may take some time.",
        )


# Process-wide probe history shared by the proxy status endpoint
connection_history = ConnectionHistory(settings.connection_history_size)
