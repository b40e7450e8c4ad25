# =============================================================================
# PDF Parser — Docling
# =============================================================================
#
# Converts an uploaded PDF into an ordered list of text elements, each
# annotated with the page it came from. The chunker only needs text and
# page numbers; headings and tables are kept as separate element types so
# chunk metadata can say what a chunk contains.
#
# The parser returns its own dataclasses (ParsedElement, ParsedDocument)
# rather than Docling types, so the chunker and the worker never import
# Docling.
#
# Text extraction only: OCR and table-structure models are disabled. A
# scanned PDF without a text layer therefore yields no elements, and the
# worker drops the job as empty.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from docling.datamodel.base_models import InputFormat
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption
from docling_core.types.doc.labels import DocItemLabel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ParsedElement:
    """One paragraph, heading, list item or table from the PDF."""

    text: str
    page_number: int  # 1-indexed; 0 when Docling reports no provenance
    element_type: str  # "text", "heading" or "table"
    section_title: str | None = None
    level: int = 0


@dataclass
class ParsedDocument:
    """All elements of a PDF in reading order."""

    elements: list[ParsedElement] = field(default_factory=list)
    page_count: int = 0
    filename: str = ""

    @property
    def char_count(self) -> int:
        return sum(len(e.text) for e in self.elements)


_TEXT_LABELS = (
    DocItemLabel.TEXT,
    DocItemLabel.PARAGRAPH,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
    DocItemLabel.CODE,
    DocItemLabel.FORMULA,
)
_HEADING_LABELS = (DocItemLabel.SECTION_HEADER, DocItemLabel.TITLE)


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton (one per worker process)
# ---------------------------------------------------------------------------

_converter: DocumentConverter | None = None


def _get_converter() -> DocumentConverter:
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        logger.info("Initializing Docling DocumentConverter...")

        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = False
        pipeline_options.do_table_structure = False

        _converter = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
    return _converter


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_pdf(file_path: str) -> ParsedDocument:
    """
    Parse a PDF file into page-annotated elements.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuntimeError: If Docling cannot convert the file (corrupt PDF,
            not a PDF at all, ...).
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Upload not found: {file_path}")

    logger.info("Parsing PDF: %s", path.name)

    try:
        result = _get_converter().convert(str(path))
    except Exception as exc:
        raise RuntimeError(
            f"Docling failed to parse '{path.name}': {exc}"
        ) from exc

    document = result.document
    elements: list[ParsedElement] = []
    current_section: str | None = None
    pages_seen: set[int] = set()

    for item, level in document.iterate_items():
        page_no = 0
        if getattr(item, "prov", None):
            page_no = item.prov[0].page_no
            pages_seen.add(page_no)

        label = getattr(item, "label", None)

        if label in _HEADING_LABELS:
            text = getattr(item, "text", "").strip()
            if text:
                current_section = text
                elements.append(ParsedElement(
                    text=text,
                    page_number=page_no,
                    element_type="heading",
                    section_title=current_section,
                    level=level,
                ))

        elif label == DocItemLabel.TABLE:
            table_text = _table_text(item, document)
            if table_text:
                elements.append(ParsedElement(
                    text=table_text,
                    page_number=page_no,
                    element_type="table",
                    section_title=current_section,
                    level=level,
                ))

        elif label in _TEXT_LABELS:
            text = getattr(item, "text", "").strip()
            if text:
                elements.append(ParsedElement(
                    text=text,
                    page_number=page_no,
                    element_type="text",
                    section_title=current_section,
                    level=level,
                ))

    page_count = max(pages_seen) if pages_seen else 0

    logger.info(
        "Parsed '%s': %d elements, %d pages, %d characters",
        path.name, len(elements), page_count,
        sum(len(e.text) for e in elements),
    )

    return ParsedDocument(
        elements=elements,
        page_count=page_count,
        filename=path.name,
    )


def _table_text(table_item: object, document: object) -> str:
    """Render a Docling TableItem as markdown, falling back to its caption text."""
    export = getattr(table_item, "export_to_markdown", None)
    if export is not None:
        try:
            return export(doc=document).strip()
        except Exception as exc:
            logger.warning("Table export to markdown failed: %s", exc)

    return getattr(table_item, "text", "").strip()
