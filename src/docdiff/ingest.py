"""
Document ingestion.

Turns Word, PDF and Excel files into DocumentContent: an ordered list of
plain-text paragraphs with ``p-N`` ids, plus a simple HTML rendering used by
the change navigator.

Supports:
- Word (.docx) via python-docx, table rows flattened to one line each
- PDF via PyMuPDF, one paragraph per text block
- Excel (.xlsx) via openpyxl, one paragraph per non-empty row
"""

import logging
import os
from typing import List, Optional

import fitz  # PyMuPDF
import openpyxl
from docx import Document
from lxml import etree
from lxml.html import builder as E

from .models import DocumentContent, DocumentFormat, Paragraph, Position, xml_safe

logger = logging.getLogger(__name__)

EXTENSIONS = {
    '.docx': DocumentFormat.DOCX,
    '.pdf': DocumentFormat.PDF,
    '.xlsx': DocumentFormat.XLSX,
}

TABLE_CELL_SEPARATOR = ' | '
SHEET_CELL_SEPARATOR = '\t'


class UnsupportedFormatError(ValueError):
    """The file extension is not one of the supported formats."""


class DocumentParseError(Exception):
    """The file could not be read by its format backend."""


def detect_format(path: str) -> Optional[str]:
    """Determine file type from extension."""
    ext = os.path.splitext(path)[1].lower()
    return EXTENSIONS.get(ext)


def supported_extensions() -> List[str]:
    return list(EXTENSIONS)


class _ParagraphCollector:
    """Assigns sequential ids while paragraphs are gathered."""

    def __init__(self):
        self.paragraphs: List[Paragraph] = []

    def add(self, text: str, page: Optional[int] = None, sheet: Optional[str] = None):
        index = len(self.paragraphs)
        self.paragraphs.append(Paragraph(
            id=f'p-{index}',
            text=text,
            position=Position(index=index, page=page, sheet=sheet)
        ))


def render_html(paragraphs: List[Paragraph], css_class: str) -> str:
    """Minimal preview markup: one <p> per paragraph."""
    container = E.DIV(E.CLASS(css_class), *[E.P(xml_safe(p.text)) for p in paragraphs])
    return etree.tostring(container, encoding='unicode', method='html')


def parse_docx(path: str) -> DocumentContent:
    """Extract paragraphs, then table rows, from a Word document."""
    try:
        doc = Document(path)
    except Exception as e:
        raise DocumentParseError(f"Cannot read Word document {path}: {e}") from e

    collector = _ParagraphCollector()
    for para in doc.paragraphs:
        text = para.text.strip()
        if text:
            collector.add(text)

    for table in doc.tables:
        for row in table.rows:
            text = TABLE_CELL_SEPARATOR.join(cell.text.strip() for cell in row.cells)
            if text.replace(TABLE_CELL_SEPARATOR, '').strip():
                collector.add(text)

    logger.debug("Extracted %d paragraphs from %s", len(collector.paragraphs), path)
    return DocumentContent(
        name=os.path.basename(path),
        format=DocumentFormat.DOCX,
        paragraphs=collector.paragraphs,
        html_content=render_html(collector.paragraphs, 'docx-content'),
        metadata={'file_size': os.path.getsize(path), 'table_count': len(doc.tables)}
    )


class PdfParser:
    """Extracts text blocks from PDF documents."""

    def __init__(self, filepath: str):
        self.filepath = filepath
        try:
            self.doc = fitz.open(filepath)
        except Exception as e:
            raise DocumentParseError(f"Cannot read PDF {filepath}: {e}") from e

    def close(self):
        self.doc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get_page_count(self) -> int:
        return len(self.doc)

    def extract_paragraphs(self) -> List[Paragraph]:
        """One paragraph per text block, spans joined with single spaces."""
        collector = _ParagraphCollector()

        for page_num in range(len(self.doc)):
            page = self.doc[page_num]
            blocks = page.get_text("dict")["blocks"]

            for block in blocks:
                if block["type"] != 0:  # not a text block
                    continue

                block_text = []
                for line in block.get("lines", []):
                    line_text = [span.get("text", "") for span in line.get("spans", [])
                                 if span.get("text", "").strip()]
                    if line_text:
                        block_text.append(" ".join(line_text))

                text = " ".join(block_text).strip()
                if text:
                    collector.add(text, page=page_num + 1)

        return collector.paragraphs


def parse_pdf(path: str) -> DocumentContent:
    with PdfParser(path) as parser:
        paragraphs = parser.extract_paragraphs()
        page_count = parser.get_page_count()

    logger.debug("Extracted %d paragraphs from %d pages of %s", len(paragraphs), page_count, path)
    return DocumentContent(
        name=os.path.basename(path),
        format=DocumentFormat.PDF,
        paragraphs=paragraphs,
        html_content=render_html(paragraphs, 'pdf-content'),
        metadata={'file_size': os.path.getsize(path), 'page_count': page_count}
    )


def _cell_text(value) -> str:
    return '' if value is None else str(value)


def parse_xlsx(path: str) -> DocumentContent:
    """A ``[Sheet: name]`` header per sheet followed by one paragraph per row."""
    try:
        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as e:
        raise DocumentParseError(f"Cannot read workbook {path}: {e}") from e

    collector = _ParagraphCollector()
    try:
        for sheet in wb.worksheets:
            collector.add(f'[Sheet: {sheet.title}]', sheet=sheet.title)
            for row in sheet.iter_rows(values_only=True):
                text = SHEET_CELL_SEPARATOR.join(_cell_text(v) for v in row)
                if text.strip():
                    collector.add(text, sheet=sheet.title)
        sheet_count = len(wb.worksheets)
    finally:
        wb.close()

    logger.debug("Extracted %d rows from %d sheets of %s", len(collector.paragraphs), sheet_count, path)
    return DocumentContent(
        name=os.path.basename(path),
        format=DocumentFormat.XLSX,
        paragraphs=collector.paragraphs,
        html_content=render_html(collector.paragraphs, 'xlsx-content'),
        metadata={'file_size': os.path.getsize(path), 'sheet_count': sheet_count}
    )


PARSERS = {
    DocumentFormat.DOCX: parse_docx,
    DocumentFormat.PDF: parse_pdf,
    DocumentFormat.XLSX: parse_xlsx,
}


def parse_document(path: str) -> DocumentContent:
    """Extract paragraphs from any supported document type."""
    file_type = detect_format(path)
    if file_type is None:
        raise UnsupportedFormatError(f"Unsupported file type: {os.path.splitext(path)[1] or path}")
    return PARSERS[file_type](path)
