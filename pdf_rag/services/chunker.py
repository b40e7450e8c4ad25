# =============================================================================
# Character-Window Chunker
# =============================================================================
#
# Splits a parsed document into fixed-size character windows with a fixed
# overlap. Each chunk carries the page(s) it came from and a tiktoken token
# count, so oversize chunks are visible in the stored metadata.
#
# ALGORITHM:
# 1. Concatenate all parsed elements with \n\n separators
# 2. Build a parallel mapping: character position → source element
# 3. Slide a window of chunk_size characters, advancing by
#    chunk_size - chunk_overlap, until a window reaches the end of the text
# 4. For each window: strip it, skip it if blank, look up metadata from the
#    char → element mapping
#
# For n characters and step s = chunk_size - chunk_overlap the number of
# windows is 1 when n <= chunk_size, else ceil((n - chunk_size) / s) + 1.
# =============================================================================

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import tiktoken

from pdf_rag.services.parser import ParsedDocument

logger = logging.getLogger(__name__)

ELEMENT_SEPARATOR = "\n\n"


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ChunkResult:
    """A single chunk ready for embedding and storage."""

    content: str
    page_number: int  # Page of the first element in the window
    chunk_index: int  # 0-indexed window position within the document
    char_count: int
    token_count: int
    metadata: dict = field(default_factory=dict)
    # metadata keys:
    #   section_title: str | None
    #   contains_table: bool
    #   source_pages: list[int]
    #   element_types: list[str]


# ---------------------------------------------------------------------------
# Tiktoken Encoder — Cached Singleton
# ---------------------------------------------------------------------------

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Lazily initialize and cache the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def expected_window_count(char_count: int, chunk_size: int, chunk_overlap: int) -> int:
    """Number of windows the chunker slides over a text of `char_count` chars."""
    _validate(chunk_size, chunk_overlap)
    if char_count <= 0:
        return 0
    if char_count <= chunk_size:
        return 1
    step = chunk_size - chunk_overlap
    return math.ceil((char_count - chunk_size) / step) + 1


def chunk_document(
    parsed_doc: ParsedDocument,
    chunk_size: int = 1000,
    chunk_overlap: int = 100,
) -> list[ChunkResult]:
    """
    Split a parsed document into overlapping character windows.

    Args:
        parsed_doc: The parsed document from the parser.
        chunk_size: Characters per window.
        chunk_overlap: Characters shared by consecutive windows.

    Returns:
        List of ChunkResult in document order. Blank windows are skipped,
        so chunk_index may have gaps.

    Raises:
        ValueError: If chunk_size <= 0 or chunk_overlap is not in
            [0, chunk_size).
    """
    _validate(chunk_size, chunk_overlap)

    if not parsed_doc.elements:
        logger.warning("No elements to chunk in '%s'", parsed_doc.filename)
        return []

    # --- Step 1: Build annotated text ---
    text_parts: list[str] = []
    char_to_element_idx: list[int] = []

    for i, element in enumerate(parsed_doc.elements):
        if i > 0:
            text_parts.append(ELEMENT_SEPARATOR)
            char_to_element_idx.extend([i - 1] * len(ELEMENT_SEPARATOR))

        text_parts.append(element.text)
        char_to_element_idx.extend([i] * len(element.text))

    full_text = "".join(text_parts)
    total_chars = len(full_text)

    if not full_text.strip():
        logger.warning("Only whitespace to chunk in '%s'", parsed_doc.filename)
        return []

    logger.debug(
        "Chunking '%s': %d characters, chunk_size=%d, overlap=%d",
        parsed_doc.filename, total_chars, chunk_size, chunk_overlap,
    )

    encoder = _get_encoder()
    chunks: list[ChunkResult] = []
    step = chunk_size - chunk_overlap

    # --- Step 2: Sliding window over characters ---
    for chunk_idx, start in enumerate(range(0, total_chars, step)):
        end = min(start + chunk_size, total_chars)
        chunk_text = full_text[start:end].strip()

        if chunk_text:
            # --- Step 3: Metadata from the elements under this window ---
            element_indices = sorted(set(char_to_element_idx[start:end]))
            chunk_elements = [parsed_doc.elements[i] for i in element_indices]

            page_number = chunk_elements[0].page_number if chunk_elements else 1
            source_pages = sorted(
                {e.page_number for e in chunk_elements if e.page_number > 0}
            )
            section_title = next(
                (e.section_title for e in chunk_elements if e.section_title),
                None,
            )

            chunks.append(ChunkResult(
                content=chunk_text,
                page_number=page_number,
                chunk_index=chunk_idx,
                char_count=len(chunk_text),
                token_count=len(encoder.encode(chunk_text)),
                metadata={
                    "section_title": section_title,
                    "contains_table": any(
                        e.element_type == "table" for e in chunk_elements
                    ),
                    "source_pages": source_pages,
                    "element_types": sorted({e.element_type for e in chunk_elements}),
                },
            ))

        if end >= total_chars:
            break

    logger.info(
        "Chunked '%s' into %d chunks (%d characters)",
        parsed_doc.filename, len(chunks), total_chars,
    )
    return chunks


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _validate(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if not 0 <= chunk_overlap < chunk_size:
        raise ValueError(
            f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} "
            f"with chunk_size={chunk_size}"
        )
