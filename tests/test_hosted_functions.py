import base64

import pytest
import requests

from ragadmin.core.exceptions import ExternalServiceError, GoogleDriveError
from ragadmin.schemas.configuration import GoogleDriveIntegrationConfig
from ragadmin.services import hosted_functions
from ragadmin.services.connection_monitor import ConnectionHistory
from ragadmin.services.hosted_functions import GoogleDriveClient, PdfProxyClient, ServerPdfClient

PDF_BYTES = b"%PDF-1.4 test document"


@pytest.fixture


def recorder(monkeypatch, fake_response):
    """Replace requests.post with a scripted sequence of replies or exceptions."""
    calls = []
    script = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers})
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(hosted_functions.requests, "post", fake_post)

    def _script(*outcomes):
        script.extend(outcomes)
        return calls

    return _script


def test_fetch_document_converts_drive_link_and_decodes(recorder, fake_response):
    calls = recorder(fake_response(base64.b64encode(PDF_BYTES).decode()))

    data = PdfProxyClient(ConnectionHistory(5)).fetch_document(
        "https://drive.google.com/file/d/FILE123/view", title="Handbook", document_id=7
    )

    assert data == PDF_BYTES
    sent = calls[0]["json"]
    assert sent["url"] == "https://drive.google.com/uc?export=download&id=FILE123&alt=media"
    assert sent["title"] == "Handbook"
    assert sent["documentId"] == 7
    assert calls[0]["url"].endswith("/pdf-proxy")


def test_fetch_document_retries_transient_failures(recorder, fake_response):
    calls = recorder(
        requests.exceptions.ConnectionError("reset"),
        requests.exceptions.Timeout("slow"),
        fake_response({"data": base64.b64encode(PDF_BYTES).decode()}),
    )
    assert PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf") == PDF_BYTES
    assert len(calls) == 3


def test_fetch_document_gives_up_with_hint(recorder):
    calls = recorder(requests.exceptions.Timeout("slow"))

    with pytest.raises(ExternalServiceError) as exc:
        PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf")

    assert len(calls) == 3
    assert "timed out" in exc.value.message
    assert exc.value.details["hint"]


def test_fetch_document_does_not_retry_client_errors(recorder, fake_response):
    calls = recorder(fake_response({"error": "missing"}, status_code=404, text="Not Found"))

    with pytest.raises(ExternalServiceError) as exc:
        PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf")

    assert len(calls) == 1
    assert "404" in exc.value.message


def test_fetch_document_retries_server_errors(recorder, fake_response):
    calls = recorder(
        fake_response({"error": "busy"}, status_code=503, text="busy"),
        fake_response({"data": base64.b64encode(PDF_BYTES).decode()}),
    )
    assert PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf") == PDF_BYTES
    assert len(calls) == 2


def test_fetch_document_does_not_retry_non_json_reply(recorder, fake_response):
    calls = recorder(fake_response(None, text="<html>oops</html>"))
    with pytest.raises(ExternalServiceError):
        PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf")
    assert len(calls) == 1


def test_fetch_document_rejects_bad_payload(recorder, fake_response):
    recorder(fake_response({"error": "Failed to fetch document: 404 Not Found"}))
    with pytest.raises(ExternalServiceError):
        PdfProxyClient(ConnectionHistory(5)).fetch_document("https://example.com/a.pdf")


def test_connection_test_records_history(recorder, fake_response):
    history = ConnectionHistory(5)
    recorder(fake_response({"status": "connected"}))
    assert PdfProxyClient(history).connection_test().ok is True
    assert history.is_connected


def test_connection_test_failure_is_recorded(recorder, fake_response):
    history = ConnectionHistory(5)
    recorder(fake_response({"error": "down"}, status_code=503, text="down"))

    record = PdfProxyClient(history).connection_test()

    assert record.ok is False
    assert "503" in history.last_error


def test_server_extraction_sends_correlation_id(recorder, fake_response):
    calls = recorder(fake_response({"status": "completed", "extractedText": "Server side text"}))

    text = ServerPdfClient().extract(PDF_BYTES, {"pages": 2})

    assert text == "Server side text"
    assert calls[0]["json"]["pdfBase64"] == base64.b64encode(PDF_BYTES).decode()
    assert calls[0]["json"]["options"] == {"pages": 2}
    assert calls[0]["headers"]["X-Correlation-Id"]


def test_drive_requires_credentials(recorder):
    calls = recorder(AssertionError("no request expected"))
    with pytest.raises(GoogleDriveError):
        GoogleDriveClient().list_files(GoogleDriveIntegrationConfig(client_email="svc@example.com"))
    assert calls == []


def test_drive_list_and_process(recorder, fake_response):
    config = GoogleDriveIntegrationConfig(client_email="svc@example.com", private_key="KEY", folder_id="F1")
    calls = recorder(
        fake_response({"files": [{"id": "1", "name": "Guide.pdf", "mimeType": "application/pdf"}]}),
        fake_response({"success": True}),
    )

    files = GoogleDriveClient().list_files(config)
    kickoff = GoogleDriveClient().process_documents(config, ["1"])

    assert files[0].name == "Guide.pdf"
    assert files[0].mime_type == "application/pdf"
    assert calls[0]["json"] == {"client_email": "svc@example.com", "private_key": "KEY", "folder_id": "F1"}
    assert calls[1]["json"]["documentIds"] == ["1"]
    assert kickoff.success is True
