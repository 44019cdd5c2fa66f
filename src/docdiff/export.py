"""
Redline and merged-document output.

Redlines show:
- Removed text in red strikethrough
- Added text in blue bold
- Modified paragraphs word by word with the same colours
"""

import logging
import os
from typing import Iterable, List, Tuple

from docx import Document
from docx.shared import RGBColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate

from .diff_engine import generate_diff_text
from .merge import Actions, reconstruct, reconstruct_html, resolve_lines
from .models import ChangeType, ComparisonResult, DiffResult, xml_safe

logger = logging.getLogger(__name__)

Segment = Tuple[str, str]


def diff_segments(diff: DiffResult) -> List[Segment]:
    """(text, change type) runs making up one redlined paragraph."""
    if diff.type == ChangeType.MODIFIED:
        return [(span.value, span.type) for span in diff.word_diffs]
    if diff.type == ChangeType.ADDED:
        return [(diff.modified.text, ChangeType.ADDED)]
    if diff.type == ChangeType.REMOVED:
        return [(diff.original.text, ChangeType.REMOVED)]
    return [(diff.modified.text, ChangeType.UNCHANGED)]


def escape_xml(text: str) -> str:
    """Escape special XML characters for ReportLab."""
    text = xml_safe(text)
    text = text.replace("&", "&amp;")
    text = text.replace("<", "&lt;")
    text = text.replace(">", "&gt;")
    text = text.replace('"', "&quot;")
    text = text.replace("'", "&apos;")
    return text


def write_word_redline(comparison: ComparisonResult, output_path: str) -> None:
    """Generate a redlined Word document."""
    doc = Document()

    for diff in comparison.diffs:
        para = doc.add_paragraph()
        for text, seg_type in diff_segments(diff):
            if not text:
                continue

            run = para.add_run(xml_safe(text))
            if seg_type == ChangeType.REMOVED:
                run.font.strike = True
                run.font.color.rgb = RGBColor(255, 0, 0)  # Red
            elif seg_type == ChangeType.ADDED:
                run.bold = True
                run.font.color.rgb = RGBColor(0, 0, 255)  # Blue

    doc.save(output_path)


class PdfGenerator:
    """Generates PDF documents with redline formatting."""

    def __init__(self, output_path: str):
        self.output_path = output_path
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name='Normal_Custom',
            parent=self.styles['Normal'],
            fontSize=11,
            leading=14,
            spaceAfter=6
        ))

    def _build(self, story: list) -> None:
        doc = SimpleDocTemplate(
            self.output_path,
            pagesize=letter,
            rightMargin=72,
            leftMargin=72,
            topMargin=72,
            bottomMargin=72
        )
        doc.build(story)

    def _paragraph(self, markup: str) -> Paragraph:
        return Paragraph(markup, self.styles['Normal_Custom'])

    def generate_redline(self, diffs: Iterable[DiffResult]) -> None:
        story = []

        for diff in diffs:
            formatted_parts = []
            for text, seg_type in diff_segments(diff):
                if not text:
                    continue
                escaped_text = escape_xml(text)
                if seg_type == ChangeType.REMOVED:
                    formatted_parts.append(f'<font color="red"><strike>{escaped_text}</strike></font>')
                elif seg_type == ChangeType.ADDED:
                    formatted_parts.append(f'<font color="blue"><b>{escaped_text}</b></font>')
                else:
                    formatted_parts.append(escaped_text)

            if formatted_parts:
                story.append(self._paragraph("".join(formatted_parts)))

        if not story:
            story.append(self._paragraph("No differences found."))
        self._build(story)

    def generate_plain(self, lines: Iterable[str]) -> None:
        story = [self._paragraph(escape_xml(line)) for line in lines if line.strip()]
        if not story:
            story.append(self._paragraph(""))
        self._build(story)


def write_pdf_redline(comparison: ComparisonResult, output_path: str) -> None:
    """Generate a redlined PDF document."""
    PdfGenerator(output_path).generate_redline(comparison.diffs)


def write_redline(comparison: ComparisonResult, output_path: str) -> None:
    """Redline as .pdf or .docx depending on the output extension."""
    if os.path.splitext(output_path)[1].lower() == '.pdf':
        write_pdf_redline(comparison, output_path)
    else:
        write_word_redline(comparison, output_path)
    logger.debug("Redline saved to %s", output_path)


def write_report(comparison: ComparisonResult, output_path: str) -> None:
    with open(output_path, 'w', encoding='utf-8') as fh:
        fh.write(generate_diff_text(comparison))


def write_merged(diffs: List[DiffResult], actions: Actions, output_path: str,
                 title: str = 'Document') -> None:
    """
    Save the merged document.

    The format follows the extension: .docx, .pdf, .html/.htm, anything
    else is written as plain text.
    """
    ext = os.path.splitext(output_path)[1].lower()

    if ext == '.docx':
        doc = Document()
        for line in resolve_lines(diffs, actions):
            doc.add_paragraph(xml_safe(line))
        doc.save(output_path)
    elif ext == '.pdf':
        PdfGenerator(output_path).generate_plain(resolve_lines(diffs, actions))
    elif ext in ('.html', '.htm'):
        with open(output_path, 'w', encoding='utf-8') as fh:
            fh.write(reconstruct_html(diffs, actions, title))
    else:
        with open(output_path, 'w', encoding='utf-8') as fh:
            fh.write(reconstruct(diffs, actions))

    logger.debug("Merged document saved to %s", output_path)
