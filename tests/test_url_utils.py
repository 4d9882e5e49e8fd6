from ragadmin.services.url_utils import convert_google_drive_url, is_google_drive_url, validate_pdf_url

DIRECT = "https://drive.google.com/uc?export=download&id={}&alt=media"


def test_share_link_is_converted():
    url, converted = convert_google_drive_url("https://drive.google.com/file/d/ABC123xyz/view?usp=sharing")
    assert converted is True
    assert url == DIRECT.format("ABC123xyz")


def test_open_id_and_docs_links_are_converted():
    assert convert_google_drive_url("https://drive.google.com/open?id=XYZ789") == (DIRECT.format("XYZ789"), True)
    assert convert_google_drive_url("https://docs.google.com/document/d/DOC1/edit") == (DIRECT.format("DOC1"), True)


def test_conversion_is_idempotent():
    first, _ = convert_google_drive_url("https://drive.google.com/file/d/ABC123xyz/view")
    second, converted = convert_google_drive_url(first)
    assert second == first
    assert converted is False


def test_non_drive_urls_are_untouched():
    assert convert_google_drive_url("https://example.com/report.pdf") == ("https://example.com/report.pdf", False)
    assert not is_google_drive_url("https://example.com/report.pdf")


def test_validate_pdf_url():
    assert validate_pdf_url("") == (False, "URL is empty")
    assert validate_pdf_url("not a url").message == "Invalid URL format"
    assert validate_pdf_url("https://example.com/files/report.pdf").is_valid
    assert validate_pdf_url(DIRECT.format("ABC123xyz")).is_valid

    page = validate_pdf_url("https://example.com/page.html")
    assert not page.is_valid
    assert "PDF" in page.message


def test_drive_link_without_alt_media_is_invalid():
    result = validate_pdf_url("https://drive.google.com/file/d/ABC123xyz/view")
    assert result.is_valid is False
    assert "alt=media" in result.message
