"""
Cleaning helpers for text recovered from PDFs.

Extracted text often carries control characters, font-table garbage or raw
stream bytes. These helpers detect that and salvage whatever readable words
remain, falling back through progressively more aggressive passes.
"""
import re
import logging

from ragadmin.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

UNREADABLE_MESSAGE = (
    "Could not extract readable text from this document. "
    "The document appears to contain binary data or have encoding issues."
)

CONTROL_CHARS = re.compile(r"[\x00-\x09\x0B\x0C\x0E-\x1F\x7F-\x9F]")
NON_LATIN = re.compile(r"[^\x20-\x7E\r\n\t\u00A0-\u00FF\u2000-\u206F]")
WORD_WITH_LETTERS = re.compile(r"[a-zA-Z]{2,}")
LETTERS_ONLY_WORD = re.compile(r"^[a-zA-Z]{3,}$")
SENTENCE = re.compile(r"[A-Z][^.!?]+[.!?]")

FALLBACK_PATTERNS = [
    re.compile(r"(?:[A-Za-z]{3,}[\s.,;:!?]*){3,}"),
    re.compile(r"(?:[A-Z][a-z]{2,}[\s.,;:!?]*){2,}"),
    re.compile(r"[A-Z][a-z]+\s[a-z]+\s[a-z]+[\s.,;:!?]"),
]

SERVER_ERROR_PHRASES = (
    "error extracting text",
    "internal server error",
    "failed to fetch",
    "function invocation failed",
)


def _has_enough_readable_words(text: str) -> bool:
    words = [w for w in text.split() if re.search(r"[a-zA-Z]{3,}", w)]
    return len(words) >= 10 and len(words) >= len(text) / 100


def _extract_text_patterns(text: str) -> str:
    for pattern in FALLBACK_PATTERNS:
        matches = [m.group(0) for m in pattern.finditer(text)]
        if matches:
            extracted = re.sub(r"\s+", " ", " ".join(matches)).strip()
            if len(extracted) > 100:
                logger.info(f"Pattern extraction successful ({len(extracted)} chars)")
                return extracted
    logger.info("Could not extract readable text using patterns")
    return UNREADABLE_MESSAGE


def clean_pdf_text(text: str) -> str:
    """Aggressively clean text, trying stricter passes until something readable remains."""
    if not text:
        return ""

    logger.info(f"Running PDF text cleaning on {len(text)} chars")

    cleaned = NON_LATIN.sub(" ", CONTROL_CHARS.sub(" ", text)).replace("\ufffd", " ").strip()
    if _has_enough_readable_words(cleaned) and len(cleaned) > 200:
        return cleaned

    words = " ".join(w for w in text.split() if WORD_WITH_LETTERS.search(w) and len(w) >= 3)
    if len(words) > 200:
        return words

    letter_words = " ".join(w for w in text.split() if LETTERS_ONLY_WORD.match(w))
    if len(letter_words) > 100:
        return letter_words

    sentences = SENTENCE.findall(text)
    if sentences:
        sentence_text = " ".join(sentences)
        if len(sentence_text) > 100:
            return sentence_text

    return _extract_text_patterns(text)


def is_binary_data(text: str) -> bool:
    """Heuristic: at least two binary indicators must fire. Short text is never binary."""
    if not text or len(text) < 100:
        return False

    suspicious = re.sub(r"[a-zA-Z0-9\s.,;:!?()\[\]{}'\"$%&*+\-=<>|/\\]", "", text)
    indicators = [
        len(suspicious) / len(text) > 0.2,
        len(re.findall(r"\s", text)) < len(text) / 15,
        re.search(r"[&@#^~*\\/]{2,}", text) is not None,
        re.search(r"0x[0-9A-F]{2}", text, re.IGNORECASE) is not None,
    ]
    return sum(indicators) >= 2


def extract_plain_text(text: str) -> str:
    if is_binary_data(text):
        return clean_pdf_text(text)
    return text


def validate_extracted_content(text: str, title: str = "document") -> str:
    """Reject empty content and error pages returned in place of a document."""
    if not text or not text.strip():
        raise ExtractionError(f"No text content was extracted from {title}")

    lowered = text.lower()
    for phrase in SERVER_ERROR_PHRASES:
        if phrase in lowered and len(text) < 500:
            raise ExtractionError(
                f"Extraction for {title} returned an error message instead of content",
                details={"phrase": phrase},
            )

    if len(text.strip()) < 50:
        logger.warning(f"Extracted content for {title} is very short ({len(text.strip())} chars)")
    return text
