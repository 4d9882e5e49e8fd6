from ragadmin.services.pdf_extraction import (
    COULD_NOT_EXTRACT_MESSAGE,
    NOT_A_PDF_MESSAGE,
    ExtractionContext,
    PdfTextExtractor,
    clean_extracted_text,
    extract_by_encoding_guess,
    extract_parenthetical,
    extract_pdf_metadata,
    extract_text_objects,
    is_pdf_bytes,
    is_pdf_command,
    unescape_pdf_string,
)

HEURISTICS_ONLY = ExtractionContext(use_structural_parser=False)


def test_pdf_header_detection():
    assert is_pdf_bytes(b"%PDF-1.7\n...")
    assert not is_pdf_bytes(b"<html>not a pdf</html>")
    assert not is_pdf_bytes(b"")


def test_non_pdf_input_fails_without_raising():
    result = PdfTextExtractor(HEURISTICS_ONLY).extract(b"plain text, definitely not a PDF")
    assert result.success is False
    assert result.text == NOT_A_PDF_MESSAGE
    assert result.attempts == []


def test_text_objects_strategy_recovers_prose(text_pdf):
    text = extract_text_objects(text_pdf)
    assert "Retrieval pipelines depend on clean text extraction" in text
    assert "Each paragraph is split into chunks" in text


def test_extractor_stops_at_first_successful_strategy(text_pdf):
    progress = []
    result = PdfTextExtractor(HEURISTICS_ONLY).extract(text_pdf, progress.append)

    assert result.success is True
    assert result.strategy == "text_objects"
    assert result.char_count == len(result.text) > 100
    assert [a.name for a in result.attempts] == ["text_objects"]
    assert result.page_count == 1
    assert progress[0] == 5 and progress[-1] == 100
    assert progress == sorted(progress)


def test_image_only_pdf_reports_failure(image_pdf):
    result = PdfTextExtractor(HEURISTICS_ONLY).extract(image_pdf)

    assert result.success is False
    assert result.text == COULD_NOT_EXTRACT_MESSAGE
    assert len(result.attempts) == 5
    assert all(a.char_count == 0 for a in result.attempts)


def test_structural_stage_is_first_when_enabled():
    names = [name for name, _ in PdfTextExtractor(ExtractionContext(use_structural_parser=True)).strategies()]
    assert names[0] == "structural"
    assert names[1:] == ["text_objects", "streams", "parenthetical", "encoding_guess", "char_frequency"]


def test_structural_stage_tolerates_broken_files(image_pdf):
    assert PdfTextExtractor(ExtractionContext()).extract_structural(image_pdf) is None


def test_pdf_commands_are_filtered():
    assert is_pdf_command("endobj")
    assert is_pdf_command("Type Page Parent")
    assert not is_pdf_command("Quarterly revenue grew")


def test_unescape_pdf_string():
    assert unescape_pdf_string(r"Line\none \(quoted\) \101") == "Line\none (quoted) A"


def test_parenthetical_skips_pdf_keywords():
    data = b"%PDF-1.4 (endobj) (The admin dashboard) (stream)"
    assert extract_parenthetical(data) == "The admin dashboard"


def test_encoding_guess_reads_utf16_runs():
    phrase = "Embedding providers are configurable"
    data = b"%PDF-1.4\n" + phrase.encode("utf-16-be") + b"\n%%EOF"
    assert phrase in extract_by_encoding_guess(data)


def test_clean_extracted_text_removes_artifacts():
    assert clean_extracted_text("Hello  obj  world\n\nendstream  Tj") == "Hello world"


def test_page_count_from_metadata(text_pdf):
    assert extract_pdf_metadata(text_pdf)["page_count"] == 1
    assert extract_pdf_metadata(b"%PDF-1.4 nothing")["page_count"] == 1
