import re
import logging
from typing import Iterator, List, Optional, Tuple

from ragadmin.schemas.chunking import ChunkResult, ChunkStrategy

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
RECURSIVE_PUNCTUATION_WINDOW = 100
RECURSIVE_BREAK_CHARS = ".!?;,"

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
SENTENCE_PATTERN = re.compile(r"[^.!?]*[.!?]+|[^.!?]+$")


def _segments(text: str, separator: re.Pattern) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) of the pieces of text between separator matches."""
    cursor = 0
    for match in separator.finditer(text):
        yield cursor, match.start()
        cursor = match.end()
    yield cursor, len(text)


def _trimmed(text: str, start: int, end: int) -> Optional[Tuple[int, int]]:
    """Shrink [start, end) to exclude surrounding whitespace, None if nothing is left."""
    piece = text[start:end]
    stripped = piece.strip()
    if not stripped:
        return None
    lead = len(piece) - len(piece.lstrip())
    return start + lead, start + lead + len(stripped)


class ChunkingService:
    """Splits text into ordered chunks using one of the configured strategies."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        strategy: ChunkStrategy = ChunkStrategy.FIXED_SIZE,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be greater than 0")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap must not be negative")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.strategy = ChunkStrategy(strategy)

    @classmethod
    def from_config(cls, config) -> "ChunkingService":
        """Build a splitter from a stored document_processing record."""
        return cls(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
            strategy=config.chunk_strategy,
        )

    def split(self, text: str) -> List[ChunkResult]:
        logger.info(
            f"Starting chunking - strategy: {self.strategy.value}, text length: {len(text or '')} chars, "
            f"size: {self.chunk_size}, overlap: {self.chunk_overlap}"
        )
        if not text or not text.strip():
            return []

        handlers = {
            ChunkStrategy.FIXED_SIZE: self._fixed_size,
            ChunkStrategy.PARAGRAPH: self._paragraph,
            ChunkStrategy.SENTENCE: self._sentence,
            ChunkStrategy.RECURSIVE: self._recursive_chunks,
            ChunkStrategy.SEMANTIC: self._semantic,
        }
        chunks = handlers[self.strategy](text)

        # Number chunks after empty pieces have been dropped
        for index, chunk in enumerate(chunks):
            chunk.index = index
            chunk.metadata["index"] = index
            chunk.metadata.setdefault("strategy", self.strategy.value)

        logger.info(f"Chunking complete - created {len(chunks)} chunks")
        return chunks

    def _fixed_size(self, text: str) -> List[ChunkResult]:
        # An overlap that reaches the window size would never advance
        step = self.chunk_size - self.chunk_overlap
        if step <= 0:
            logger.warning(
                f"Overlap {self.chunk_overlap} >= chunk size {self.chunk_size}, falling back to no overlap"
            )
            step = self.chunk_size

        chunks = []
        start = 0
        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            piece = text[start:end]
            if piece.strip():
                chunks.append(ChunkResult(
                    index=len(chunks),
                    content=piece,
                    start_position=start,
                    end_position=end,
                    metadata={"size": len(piece)},
                ))
            if end >= len(text):
                break
            start += step
        return chunks

    def _paragraph(self, text: str, chunk_type: str = "paragraph") -> List[ChunkResult]:
        chunks = []
        for start, end in _segments(text, PARAGRAPH_BREAK):
            bounds = _trimmed(text, start, end)
            if bounds is None:
                continue
            content = text[bounds[0]:bounds[1]]
            chunks.append(ChunkResult(
                index=len(chunks),
                content=content,
                start_position=bounds[0],
                end_position=bounds[1],
                metadata={"type": chunk_type, "size": len(content)},
            ))
        return chunks

    def _sentence(self, text: str) -> List[ChunkResult]:
        chunks = []
        for match in SENTENCE_PATTERN.finditer(text):
            bounds = _trimmed(text, match.start(), match.end())
            if bounds is None:
                continue
            content = text[bounds[0]:bounds[1]]
            chunks.append(ChunkResult(
                index=len(chunks),
                content=content,
                start_position=bounds[0],
                end_position=bounds[1],
                metadata={"type": "sentence", "size": len(content)},
            ))
        return chunks

    def _recursive_chunks(self, text: str) -> List[ChunkResult]:
        chunks: List[ChunkResult] = []
        self._recursive(text, offset=0, level=0, out=chunks)
        return chunks

    def _recursive(self, text: str, offset: int, level: int, out: List[ChunkResult]):
        if len(text) <= self.chunk_size / 2 or len(text) <= 1:
            if text.strip():
                out.append(ChunkResult(
                    index=len(out),
                    content=text,
                    start_position=offset,
                    end_position=offset + len(text),
                    metadata={"level": level, "size": len(text)},
                ))
            return

        midpoint = len(text) // 2
        split_point = midpoint
        # Search stops one short of the end so the first half is always shorter than text
        window_end = min(midpoint + RECURSIVE_PUNCTUATION_WINDOW, len(text) - 1)
        for i in range(midpoint, window_end):
            if text[i] in RECURSIVE_BREAK_CHARS:
                split_point = i + 1
                break

        carry = min(self.chunk_overlap, split_point // 2)
        second_start = split_point - carry

        self._recursive(text[:split_point], offset, level + 1, out)
        self._recursive(text[second_start:], offset + second_start, level + 1, out)

    def _semantic(self, text: str) -> List[ChunkResult]:
        chunks = self._paragraph(text, chunk_type="semantic")
        for chunk in chunks:
            # No embedding-based boundary detection is done; the score is a marker only
            chunk.metadata["semantic_score"] = None
        return chunks


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    strategy: ChunkStrategy = ChunkStrategy.FIXED_SIZE,
) -> List[ChunkResult]:
    """Split text into chunks with the given strategy."""
    return ChunkingService(chunk_size, chunk_overlap, strategy).split(text)
