import pytest

from ragadmin.schemas.chunking import ChunkStrategy
from ragadmin.schemas.configuration import DocumentProcessingConfig
from ragadmin.services.chunking_service import ChunkingService, chunk_text


def test_empty_text_produces_no_chunks():
    """Empty and whitespace-only input yields nothing for every strategy."""
    for strategy in ChunkStrategy:
        assert chunk_text("", strategy=strategy) == []
        assert chunk_text("   \n\n  ", strategy=strategy) == []


def test_invalid_sizes_are_rejected():
    with pytest.raises(ValueError):
        ChunkingService(chunk_size=0)
    with pytest.raises(ValueError):
        ChunkingService(chunk_size=100, chunk_overlap=-1)


def test_fixed_size_windows_overlap():
    text = "a" * 25
    chunks = chunk_text(text, chunk_size=10, chunk_overlap=2)

    assert [(c.start_position, c.end_position) for c in chunks] == [(0, 10), (8, 18), (16, 25)]
    assert [c.index for c in chunks] == [0, 1, 2]
    assert all(c.metadata["strategy"] == "fixed_size" for c in chunks)


def test_fixed_size_overlap_not_smaller_than_size_still_advances():
    """An overlap equal to the size falls back to non-overlapping windows."""
    chunks = chunk_text("abcdefghijkl", chunk_size=5, chunk_overlap=5)
    assert [c.content for c in chunks] == ["abcde", "fghij", "kl"]


def test_fixed_size_overlap_larger_than_size_still_advances():
    chunks = chunk_text("abcdefghijkl", chunk_size=5, chunk_overlap=9)
    assert [c.content for c in chunks] == ["abcde", "fghij", "kl"]
    assert [c.start_position for c in chunks] == [0, 5, 10]


def test_short_text_is_single_fixed_chunk():
    chunks = chunk_text("Short text.", chunk_size=1000, chunk_overlap=200)
    assert len(chunks) == 1
    assert chunks[0].content == "Short text."


def test_paragraph_split_and_positions():
    text = "First paragraph.\n\nSecond paragraph.\n\n\n  Third."
    chunks = chunk_text(text, strategy=ChunkStrategy.PARAGRAPH)

    assert [c.content for c in chunks] == ["First paragraph.", "Second paragraph.", "Third."]
    for chunk in chunks:
        assert text[chunk.start_position:chunk.end_position] == chunk.content
        assert chunk.metadata["type"] == "paragraph"


def test_sentence_split_keeps_trailing_fragment():
    chunks = chunk_text("Hello world. How are you? Fine! And then", strategy=ChunkStrategy.SENTENCE)
    assert [c.content for c in chunks] == ["Hello world.", "How are you?", "Fine!", "And then"]


def test_recursive_short_text_is_single_chunk():
    chunks = chunk_text("0123456789", chunk_size=1000, chunk_overlap=200, strategy=ChunkStrategy.RECURSIVE)
    assert len(chunks) == 1
    assert chunks[0].content == "0123456789"
    assert (chunks[0].start_position, chunks[0].end_position) == (0, 10)


def test_recursive_without_overlap_covers_text():
    text = "abcdefghij" * 30
    chunks = chunk_text(text, chunk_size=100, chunk_overlap=0, strategy=ChunkStrategy.RECURSIVE)

    assert len(chunks) > 1
    assert all(c.size <= 50 for c in chunks)
    assert "".join(c.content for c in chunks) == text
    assert all(c.metadata["level"] >= 1 for c in chunks)


def test_recursive_prefers_punctuation_near_midpoint():
    text = "x" * 55 + "." + "y" * 44
    chunks = chunk_text(text, chunk_size=120, chunk_overlap=0, strategy=ChunkStrategy.RECURSIVE)
    assert [c.content for c in chunks] == ["x" * 55 + ".", "y" * 44]
    assert chunks[1].start_position == 56


def test_recursive_terminates_with_large_overlap():
    text = "word " * 200
    chunks = chunk_text(text, chunk_size=50, chunk_overlap=500, strategy=ChunkStrategy.RECURSIVE)
    assert chunks
    assert all(c.size <= 25 for c in chunks)


def test_semantic_marks_placeholder_score():
    chunks = chunk_text("One idea.\n\nAnother idea.", strategy=ChunkStrategy.SEMANTIC)
    assert len(chunks) == 2
    assert all(c.metadata["semantic_score"] is None for c in chunks)
    assert all(c.metadata["type"] == "semantic" for c in chunks)


def test_from_config_uses_stored_settings():
    config = DocumentProcessingConfig(chunkSize=300, chunkOverlap=30, chunkStrategy="sentence")
    splitter = ChunkingService.from_config(config)
    assert (splitter.chunk_size, splitter.chunk_overlap, splitter.strategy) == (300, 30, ChunkStrategy.SENTENCE)


def test_no_strategy_produces_blank_chunks():
    text = "  First line.\t\n\n\n   \n  Second paragraph here!   \n\n\t\tThird?  " + " " * 30 + "tail"
    for strategy in ChunkStrategy:
        chunks = chunk_text(text, chunk_size=20, chunk_overlap=5, strategy=strategy)
        assert chunks, strategy
        assert all(c.content.strip() for c in chunks), strategy
