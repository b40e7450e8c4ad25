# =============================================================================
# Unit Tests — Chunker Service
# =============================================================================
#
# Tests the character-window chunking logic without external dependencies.
# No API keys, databases, or network calls needed.
# =============================================================================

import pytest

from pdf_rag.services.chunker import chunk_document, expected_window_count
from pdf_rag.services.parser import ParsedDocument, ParsedElement


def _make_parsed_doc(
    texts: list[str],
    page_numbers: list[int] | None = None,
    element_types: list[str] | None = None,
) -> ParsedDocument:
    """Helper to build a ParsedDocument from simple text lists."""
    pages = page_numbers or [1] * len(texts)
    types = element_types or ["text"] * len(texts)
    elements = [
        ParsedElement(text=text, page_number=page, element_type=etype)
        for text, page, etype in zip(texts, pages, types, strict=True)
    ]
    return ParsedDocument(
        elements=elements,
        page_count=max(pages) if pages else 0,
        filename="test.pdf",
    )


class TestExpectedWindowCount:
    """Tests for expected_window_count()."""

    def test_short_text_is_one_window(self):
        assert expected_window_count(10, 1000, 100) == 1

    def test_exact_chunk_size_is_one_window(self):
        assert expected_window_count(1000, 1000, 100) == 1

    def test_one_char_over_needs_second_window(self):
        assert expected_window_count(1001, 1000, 100) == 2

    def test_default_window_arithmetic(self):
        # step = 900: windows start at 0, 900, 1800 → last ends at 2500
        assert expected_window_count(2500, 1000, 100) == 3

    def test_empty_text(self):
        assert expected_window_count(0, 1000, 100) == 0


class TestChunkDocument:
    """Tests for chunk_document()."""

    def test_empty_document_returns_no_chunks(self):
        doc = _make_parsed_doc([])
        assert chunk_document(doc, chunk_size=64, chunk_overlap=10) == []

    def test_single_short_element_produces_one_chunk(self):
        doc = _make_parsed_doc(["This is a short sentence."])
        chunks = chunk_document(doc, chunk_size=1000, chunk_overlap=100)
        assert len(chunks) == 1
        assert chunks[0].content == "This is a short sentence."
        assert chunks[0].chunk_index == 0
        assert chunks[0].page_number == 1
        assert chunks[0].token_count > 0

    def test_chunk_count_matches_window_arithmetic(self):
        text = "abcdefghij" * 250  # 2500 characters, no whitespace
        doc = _make_parsed_doc([text])
        chunks = chunk_document(doc, chunk_size=1000, chunk_overlap=100)
        assert len(chunks) == expected_window_count(len(text), 1000, 100) == 3

    def test_chunks_respect_chunk_size(self):
        doc = _make_parsed_doc(["Revenue grew by 15% year over year. " * 100])
        chunks = chunk_document(doc, chunk_size=200, chunk_overlap=20)
        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.char_count <= 200

    def test_consecutive_chunks_overlap(self):
        text = "".join(str(i % 10) for i in range(300))
        doc = _make_parsed_doc([text])
        chunks = chunk_document(doc, chunk_size=100, chunk_overlap=30)
        assert chunks[0].content[-30:] == chunks[1].content[:30]

    def test_chunk_indices_are_sequential(self):
        doc = _make_parsed_doc(["word " * 200])
        chunks = chunk_document(doc, chunk_size=100, chunk_overlap=10)
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))

    def test_overlap_produces_more_chunks(self):
        text = "Financial analysis is important. " * 50
        doc = _make_parsed_doc([text])
        no_overlap = chunk_document(doc, chunk_size=100, chunk_overlap=0)
        with_overlap = chunk_document(doc, chunk_size=100, chunk_overlap=50)
        assert len(with_overlap) > len(no_overlap)

    def test_page_numbers_propagated(self):
        doc = _make_parsed_doc(
            texts=["a" * 90, "b" * 90],
            page_numbers=[1, 2],
        )
        chunks = chunk_document(doc, chunk_size=100, chunk_overlap=0)
        assert chunks[0].page_number == 1
        assert chunks[0].metadata["source_pages"] == [1, 2]
        assert chunks[-1].page_number == 2

    def test_metadata_contains_section_title(self):
        elements = [
            ParsedElement(
                text="Introduction",
                page_number=1,
                element_type="heading",
                section_title="Introduction",
                level=1,
            ),
            ParsedElement(
                text="Detailed analysis follows.",
                page_number=1,
                element_type="text",
                section_title="Introduction",
            ),
        ]
        doc = ParsedDocument(elements=elements, page_count=1, filename="test.pdf")
        chunks = chunk_document(doc)
        assert chunks[0].metadata["section_title"] == "Introduction"
        assert chunks[0].metadata["element_types"] == ["heading", "text"]

    def test_table_flag_in_metadata(self):
        doc = _make_parsed_doc(
            texts=["Some text.", "| Q1 | $100M |"],
            element_types=["text", "table"],
        )
        chunks = chunk_document(doc)
        assert chunks[0].metadata["contains_table"] is True

    def test_whitespace_only_document_returns_no_chunks(self):
        doc = _make_parsed_doc(["   ", "\n\n"])
        assert chunk_document(doc) == []

    def test_whitespace_elements_do_not_leak_into_content(self):
        doc = _make_parsed_doc(["   ", "\n\n", "Actual content here."])
        chunks = chunk_document(doc)
        assert len(chunks) == 1
        assert chunks[0].content == "Actual content here."

    @pytest.mark.parametrize("size,overlap", [(0, 0), (100, 100), (100, -1)])
    def test_invalid_window_parameters_raise(self, size, overlap):
        doc = _make_parsed_doc(["text"])
        with pytest.raises(ValueError):
            chunk_document(doc, chunk_size=size, chunk_overlap=overlap)
