"""
Best-effort text recovery from raw PDF bytes.

The extractor runs an ordered list of strategies and keeps the first one that
produces enough text. An optional structural stage (a real PDF parser) runs
before the byte-level heuristics. Nothing here raises: when every strategy
comes up short the result carries an explicit failure message.
"""
import io
import re
import zlib
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import PyPDF2

from ragadmin.core.config import settings
from ragadmin.schemas.extraction import ExtractionResult, StrategyAttempt

logger = logging.getLogger(__name__)

PDF_HEADER = b"%PDF-"

NOT_A_PDF_MESSAGE = (
    "The file does not appear to be a valid PDF document. "
    "It may be corrupted or in an unsupported format."
)
COULD_NOT_EXTRACT_MESSAGE = (
    "Could not extract text from this PDF. The document may be image-based, "
    "password-protected, or use custom fonts that require specialized processing."
)

PDF_COMMANDS = {
    "Contents", "CropBox", "MediaBox", "Parent", "Resources", "Rotate", "Type", "Page", "Pages",
    "CIDInit", "ProcSet", "findresource", "begin", "dict", "begincmap", "CIDSystemInfo",
    "Registry", "Ordering", "Supplement", "def", "CMapName", "begincodespacerange",
    "endcodespacerange", "beginbfchar", "endbfchar", "endcmap", "currentdict", "CMap",
    "defineresource", "pop", "end", "FlateDecode", "DCTDecode", "Stream", "stream", "endstream",
    "obj", "endobj", "xref", "trailer", "startxref", "Font", "FontDescriptor", "Encoding", "Width",
    "Height", "Length", "Filter", "Adobe", "Identity", "UCS", "CIDFont", "Catalog", "Kids", "Count",
    "XObject", "Subtype", "Image", "ColorSpace", "DeviceRGB", "DeviceGray", "BitsPerComponent",
    "Producer", "Creator", "Root", "Info", "Size", "BaseFont", "Helvetica", "Times", "Courier",
    "WinAnsiEncoding", "PDF", "EOF", "Text", "ImageB", "ImageC", "Annots", "Outlines",
}

ARTIFACT_WORDS = re.compile(r"\b(?:obj|endobj|stream|endstream|BT|ET|Tj|TJ)\b")

StrategyFn = Callable[[bytes], Optional[str]]


@dataclass
class ExtractionContext:
    """Explicit settings for one extractor instance."""
    success_threshold: int = 100
    minimum_plausible_length: int = 50
    use_structural_parser: bool = True
    max_pages: int = 0

    @classmethod
    def from_settings(cls) -> "ExtractionContext":
        return cls(
            success_threshold=settings.extraction.success_threshold,
            minimum_plausible_length=settings.extraction.minimum_plausible_length,
            use_structural_parser=settings.extraction.use_structural_parser,
            max_pages=settings.extraction.max_pages,
        )


# ---------------------------------------------------------------------------
# Text heuristics
# ---------------------------------------------------------------------------

def is_pdf_bytes(data: bytes) -> bool:
    return bool(data) and data.lstrip()[:5] == PDF_HEADER


def is_pdf_command(content: str) -> bool:
    """True when the string is a PDF keyword or made up mostly of them."""
    if content in PDF_COMMANDS:
        return True
    words = content.split()
    if not words:
        return False
    command_count = sum(1 for word in words if word in PDF_COMMANDS)
    return command_count > len(words) * 0.5


def is_readable_text(text: str) -> bool:
    if not text or len(text) < 2:
        return False
    letters = len(re.findall(r"[a-zA-Z]", text))
    if letters < 2:
        return False
    if len(text) - letters > letters * 2:
        return False
    pdf_chars = len(re.findall(r"[<>{}\[\]/\\]", text))
    return pdf_chars <= len(text) * 0.3


def is_likely_real_word(word: str) -> bool:
    if len(word) < 3 or len(word) > 15:
        return False
    vowels = len(re.findall(r"[aeiouAEIOU]", word))
    if vowels == 0:
        return False
    consonant_ratio = (len(word) - vowels) / len(word)
    return not (word.isupper() and consonant_ratio > 0.7)


def score_text_quality(text: str) -> float:
    """Rough readability score used to rank candidate texts."""
    if not text or len(text) < 5:
        return 0.0
    score = min(len(text) / 10, 50)
    score += 2 * len([w for w in text.split() if re.search(r"[a-zA-Z]{3,}", w)])
    score += 10 * len([s for s in re.split(r"[.!?]+", text) if len(s.strip()) > 10])
    score -= 5 * len(re.findall(r"\b(?:obj|endobj|stream|endstream|def|begin|end)\b", text))
    score += len(re.findall(r"\b[A-Z][a-z]+", text))
    return max(0.0, score)


def clean_extracted_text(text: str) -> str:
    cleaned = re.sub(r"\s+", " ", text).strip()
    cleaned = ARTIFACT_WORDS.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def unescape_pdf_string(raw: str) -> str:
    """Decode the escape sequences allowed inside a PDF literal string."""
    def _replace(match: re.Match) -> str:
        token = match.group(1)
        simple = {"n": "\n", "r": "\r", "t": "\t", "(": "(", ")": ")", "\\": "\\", "b": " ", "f": " "}
        if token in simple:
            return simple[token]
        code = int(token, 8)
        return chr(code) if 32 <= code <= 126 else " "

    return re.sub(r"\\([0-7]{1,3}|[nrtbf()\\])", _replace, raw)


def extract_pdf_metadata(data: bytes) -> dict:
    text = data.decode("latin-1")
    page_count = len(re.findall(r"/Type\s*/Page\b", text))
    return {"page_count": max(page_count, 1)}


LITERAL_STRING = r"\(((?:\\.|[^\\)])*)\)"
TJ_OPERATOR = re.compile(LITERAL_STRING + r"\s*Tj")
TJ_ARRAY = re.compile(r"\[((?:\\.|[^\]])*)\]\s*TJ")
TEXT_OBJECT = re.compile(r"BT\s(.*?)\sET", re.DOTALL)
STREAM = re.compile(rb"stream\r?\n(.*?)\r?\n?endstream", re.DOTALL)


def _strings_in_block(block: str) -> List[str]:
    parts = []
    for match in re.finditer(TJ_OPERATOR.pattern + "|" + TJ_ARRAY.pattern, block):
        if match.group(1) is not None:
            candidates = [match.group(1)]
            joiner = " "
        else:
            # Kerned arrays split words into fragments
            candidates = re.findall(LITERAL_STRING, match.group(2))
            joiner = ""
        decoded = joiner.join(
            unescape_pdf_string(c) for c in candidates if not is_pdf_command(c)
        )
        if is_readable_text(decoded):
            parts.append(decoded)
    return parts


def _ascii_ratio(chunk: bytes) -> float:
    if not chunk:
        return 0.0
    printable = sum(1 for b in chunk if 32 <= b <= 126 or b in (9, 10, 13))
    return printable / len(chunk)


# ---------------------------------------------------------------------------
# Strategies: each takes raw bytes and returns text or None
# ---------------------------------------------------------------------------

def extract_text_objects(data: bytes) -> Optional[str]:
    """Parse BT ... ET text objects and their Tj / TJ string operands."""
    text = data.decode("latin-1")
    blocks = []
    for match in TEXT_OBJECT.finditer(text):
        parts = _strings_in_block(match.group(1))
        if parts:
            blocks.append(" ".join(parts))
    return "\n".join(blocks) or None


def _stream_text(content: bytes) -> str:
    decoded = content.decode("latin-1")
    if "BT" in decoded:
        from_objects = extract_text_objects(content)
        if from_objects:
            return from_objects
    tokens = []
    for run in re.findall(r"[\x20-\x7E]+", decoded):
        for token in run.split():
            if token.startswith("/") or is_pdf_command(token):
                continue
            if re.search(r"[A-Za-z]{2,}", token):
                tokens.append(token)
    return " ".join(tokens)


def extract_streams(data: bytes, keep: int = 3) -> Optional[str]:
    """Keep the longest ASCII-heavy streams, inflating Flate streams when possible."""
    candidates = []
    for match in STREAM.finditer(data):
        content = match.group(1)
        if _ascii_ratio(content) < 0.85:
            try:
                content = zlib.decompress(content)
            except zlib.error:
                continue
            if _ascii_ratio(content) < 0.85:
                continue
        if len(content) >= 20:
            candidates.append(content)

    candidates.sort(key=len, reverse=True)
    texts = [t for t in (_stream_text(c) for c in candidates[:keep]) if t.strip()]
    return "\n".join(texts) or None


def extract_parenthetical(data: bytes) -> Optional[str]:
    """Scan for standalone parenthesized strings anywhere in the file."""
    text = data.decode("latin-1")
    parts = []
    for match in re.finditer(r"\(([^)]{3,100})\)", text):
        content = match.group(1)
        if is_pdf_command(content):
            continue
        decoded = unescape_pdf_string(content)
        if is_readable_text(decoded):
            parts.append(decoded)
    return " ".join(parts) or None


def _utf16_candidates(data: bytes) -> List[str]:
    found = []
    for run in re.findall(rb"(?:\x00[\x20-\x7E]){4,}", data):
        found.append(run.decode("utf-16-be"))
    for hex_string in re.findall(rb"<FEFF([0-9A-Fa-f]{8,})>", data):
        try:
            found.append(bytes.fromhex(hex_string.decode("ascii")).decode("utf-16-be", errors="ignore"))
        except ValueError:
            continue
    return found


def _latin1_phrases(data: bytes) -> List[str]:
    text = data.decode("latin-1")
    word = r"[A-Za-z\u00C0-\u00FF]{2,}"
    return [
        m.group(0) for m in re.finditer(rf"(?:{word}[ ,.;:!?'\-]{{1,3}}){{3,}}{word}?", text)
        if not is_pdf_command(m.group(0))
    ]


def _unicode_escapes(data: bytes) -> List[str]:
    text = data.decode("latin-1")
    return [
        re.sub(r"\\u([0-9a-fA-F]{4})", lambda m: chr(int(m.group(1), 16)), run)
        for run in re.findall(r"(?:\\u[0-9a-fA-F]{4}){3,}", text)
    ]


def extract_by_encoding_guess(data: bytes) -> Optional[str]:
    """Try UTF-16BE pairs, Latin-1 phrase runs and literal \\uXXXX escapes; keep the best."""
    candidates = [
        " ".join(_utf16_candidates(data)),
        " ".join(_latin1_phrases(data)),
        " ".join(_unicode_escapes(data)),
    ]
    best = max(candidates, key=score_text_quality)
    return best if best.strip() and score_text_quality(best) > 0 else None


def extract_by_char_frequency(data: bytes, keep_chars: int = 60) -> Optional[str]:
    """Keep the most frequent printable characters, everything else becomes whitespace."""
    text = data.decode("latin-1")
    counts = Counter(ch for ch in text if 33 <= ord(ch) <= 126)
    if not counts:
        return None
    frequent = {ch for ch, _ in counts.most_common(keep_chars)}
    mapped = "".join(ch if ch in frequent else " " for ch in text)

    words, seen = [], set()
    for word in re.findall(r"[A-Za-z]{3,15}", mapped):
        if is_pdf_command(word) or word.lower() in seen or not is_likely_real_word(word):
            continue
        seen.add(word.lower())
        words.append(word)
    return " ".join(words) or None


HEURISTIC_STRATEGIES: List[Tuple[str, StrategyFn]] = [
    ("text_objects", extract_text_objects),
    ("streams", extract_streams),
    ("parenthetical", extract_parenthetical),
    ("encoding_guess", extract_by_encoding_guess),
    ("char_frequency", extract_by_char_frequency),
]


class PdfTextExtractor:
    def __init__(self, context: Optional[ExtractionContext] = None):
        self.context = context or ExtractionContext.from_settings()

    def extract_structural(self, data: bytes) -> Optional[str]:
        """Parse the document with PyPDF2 and join the page texts."""
        try:
            reader = PyPDF2.PdfReader(io.BytesIO(data))
            if reader.is_encrypted and not reader.decrypt(""):
                logger.info("Structural parser: document is encrypted")
                return None
            pages = reader.pages
            limit = self.context.max_pages or len(pages)
            texts = []
            for page in list(pages)[:limit]:
                page_text = page.extract_text() or ""
                if page_text.strip():
                    texts.append(page_text.strip())
            return "\n\n".join(texts) or None
        except Exception as e:
            # PyPDF2 raises a wide range of errors on damaged files; the heuristics take over
            logger.warning(f"Structural parser failed: {e}")
            return None

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        chain = list(HEURISTIC_STRATEGIES)
        if self.context.use_structural_parser:
            chain.insert(0, ("structural", self.extract_structural))
        return chain

    def extract(
        self,
        data: bytes,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> ExtractionResult:
        def report(percent: int):
            if progress_callback:
                progress_callback(percent)

        report(5)
        if not is_pdf_bytes(data):
            logger.warning("Extraction rejected: missing %PDF- header")
            return ExtractionResult(success=False, text=NOT_A_PDF_MESSAGE)
        report(15)

        page_count = extract_pdf_metadata(data)["page_count"]
        chain = self.strategies()
        attempts: List[StrategyAttempt] = []
        best_name, best_text = None, ""

        for position, (name, strategy) in enumerate(chain, start=1):
            raw = strategy(data)
            cleaned = clean_extracted_text(raw) if raw else ""
            attempts.append(StrategyAttempt(name=name, char_count=len(cleaned)))
            report(15 + int(80 * position / len(chain)))
            logger.info(f"Strategy {name} produced {len(cleaned)} chars")

            if len(cleaned) > self.context.success_threshold:
                report(100)
                return ExtractionResult(
                    success=True,
                    text=cleaned,
                    strategy=name,
                    char_count=len(cleaned),
                    page_count=page_count,
                    attempts=attempts,
                )
            if len(cleaned) > len(best_text):
                best_name, best_text = name, cleaned

        report(100)
        if len(best_text) >= self.context.minimum_plausible_length:
            logger.info(f"No strategy passed the success threshold, using best partial result from {best_name}")
            return ExtractionResult(
                success=True,
                text=best_text,
                strategy=best_name,
                char_count=len(best_text),
                page_count=page_count,
                attempts=attempts,
            )

        logger.warning(f"All {len(chain)} extraction strategies failed")
        return ExtractionResult(
            success=False,
            text=COULD_NOT_EXTRACT_MESSAGE,
            page_count=page_count,
            attempts=attempts,
        )


def extract_pdf_text(
    data: bytes,
    progress_callback: Optional[Callable[[int], None]] = None,
    context: Optional[ExtractionContext] = None,
) -> ExtractionResult:
    return PdfTextExtractor(context).extract(data, progress_callback)
