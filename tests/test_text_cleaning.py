import pytest

from ragadmin.core.exceptions import ExtractionError
from ragadmin.services.text_cleaning import (
    UNREADABLE_MESSAGE,
    clean_pdf_text,
    extract_plain_text,
    is_binary_data,
    validate_extracted_content,
)

PROSE = (
    "Document ingestion starts with text extraction. The extracted text is cleaned, "
    "split into chunks and embedded so that similar passages can be retrieved later. "
    "Administrators configure chunk sizes, overlap and embedding providers from the dashboard."
)


def test_short_text_is_never_binary():
    assert is_binary_data("@@##~~\\\\//") is False


def test_prose_is_not_binary():
    assert is_binary_data(PROSE) is False
    assert extract_plain_text(PROSE) == PROSE


def test_binary_garbage_is_detected():
    garbage = ("\x8f\x92\xa7\xb3" * 30) + "##~~0x1F&&@@" * 5
    assert is_binary_data(garbage) is True


def test_clean_pdf_text_strips_control_characters():
    noisy = PROSE.replace(" ", " \x01\x02 ", 5)
    cleaned = clean_pdf_text(noisy)
    assert "\x01" not in cleaned
    assert "Document ingestion starts" in " ".join(cleaned.split())


def test_clean_pdf_text_gives_up_on_pure_noise():
    assert clean_pdf_text("\x00\x01\x02 ### $$$ %%%") == UNREADABLE_MESSAGE


def test_validate_rejects_empty_content():
    with pytest.raises(ExtractionError):
        validate_extracted_content("   ", "report.pdf")


def test_validate_rejects_error_page():
    with pytest.raises(ExtractionError):
        validate_extracted_content("Internal Server Error", "report.pdf")


def test_validate_accepts_long_text_mentioning_error_phrase():
    text = PROSE * 3 + " The proxy once reported an internal server error."
    assert validate_extracted_content(text, "report.pdf") == text
