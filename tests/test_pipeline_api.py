import io

from fastapi import status

from ragadmin.services import embedding_service


def test_chunk_preview(client):
    response = client.post("/api/chunking/preview", json={
        "text": "One.\n\nTwo.\n\nThree.",
        "chunk_strategy": "paragraph",
    })
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["total_chunks"] == 3
    assert [c["content"] for c in body["chunks"]] == ["One.", "Two.", "Three."]


def test_chunk_preview_rejects_bad_size(client):
    response = client.post("/api/chunking/preview", json={"text": "abc", "chunk_size": 0})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_extract_uploaded_pdf(client, text_pdf):
    files = {"file": ("doc.pdf", io.BytesIO(text_pdf), "application/pdf")}
    response = client.post("/api/extraction/pdf", files=files)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["strategy"] == "text_objects"


def test_extract_uploaded_non_pdf_reports_failure(client):
    files = {"file": ("doc.pdf", io.BytesIO(b"hello"), "application/pdf")}
    body = client.post("/api/extraction/pdf", files=files).json()
    assert body["success"] is False
    assert body["hint"]


def test_validate_url(client):
    body = client.post("/api/extraction/validate-url", json={"url": "https://drive.google.com/file/d/ABC/view"}).json()
    assert body["is_valid"] is True
    assert body["was_converted"] is True
    assert body["converted_url"].endswith("alt=media")

    invalid = client.post("/api/extraction/validate-url", json={"url": "https://example.com/page.html"}).json()
    assert invalid["is_valid"] is False


def test_extract_from_url_rejects_invalid_url(client):
    response = client.post("/api/extraction/url", json={"url": "https://example.com/page.html"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_proxy_status_without_probe(client):
    body = client.get("/api/extraction/proxy-status").json()
    assert set(body) >= {"connected", "stability", "stable", "history"}


def test_embedding_stats_empty(client):
    body = client.get("/api/embeddings/stats").json()
    assert body["total_embeddings"] == 0
    assert body["providers"] == []


def test_embedding_test_requires_api_key(client):
    response = client.post("/api/embeddings/test", json={"text": "hello"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "API key is required" in response.json()["errors"][0]["msg"]


def test_embedding_test_with_stored_key(client, monkeypatch, fake_response):
    client.put("/api/secrets/embedding:openai", json={"api_key": "sk-test"})
    monkeypatch.setattr(
        embedding_service.requests, "post",
        lambda *a, **k: fake_response({"data": [{"embedding": [0.1] * 8}], "model": "text-embedding-3-small"}),
    )

    body = client.post("/api/embeddings/test", json={"text": "hello"}).json()

    assert body["dimensions"] == 8
    assert body["preview"] == [0.1] * 5
    assert body["validation"]["is_valid"] is True


def test_embedding_provider_error_maps_to_502(client, monkeypatch, fake_response):
    client.put("/api/secrets/embedding:openai", json={"api_key": "sk-test"})
    monkeypatch.setattr(
        embedding_service.requests, "post",
        lambda *a, **k: fake_response({"error": {"message": "quota exceeded"}}, status_code=429),
    )
    response = client.post("/api/embeddings/test", json={"text": "hello"})
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["errors"][0]["code"] == "EMBEDDING_FAILED"


def test_google_drive_without_credentials(client):
    response = client.get("/api/google-drive/files")
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["errors"][0]["code"] == "GOOGLE_DRIVE_ERROR"
