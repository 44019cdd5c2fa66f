"""
End-to-end tests on real files: ingestion, redline/merged output and the CLI.

Sample documents are generated into tmp_path: python-docx for Word,
openpyxl for Excel and the PDF generator for PDF.
"""

import json

import fitz  # PyMuPDF
import openpyxl
import pytest
from docx import Document

from docdiff.cli import main
from docdiff.diff_engine import compare
from docdiff.export import PdfGenerator, write_merged, write_pdf_redline, write_redline, write_word_redline
from docdiff.ingest import (
    DocumentParseError, UnsupportedFormatError, detect_format, parse_document, parse_docx, parse_pdf,
    parse_xlsx, render_html
)
from docdiff.merge import accept_all
from docdiff.models import ChangeType, DocumentContent, make_paragraphs


def create_original_document(path):
    doc = Document()
    doc.add_heading('SAMPLE AGREEMENT', 0)
    doc.add_paragraph('This Agreement is entered into as of January 1, 2024, by and between:')
    doc.add_paragraph('')
    doc.add_paragraph('2.2 The purchase price shall be $50,000 USD, payable within 30 days of delivery.')
    doc.add_paragraph('5.2 Either party may terminate this Agreement upon 30 days written notice.')
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = 'Name'
    table.cell(0, 1).text = 'Role'
    table.cell(1, 0).text = 'John Smith'
    table.cell(1, 1).text = 'Software Engineer'
    doc.save(path)


def create_modified_document(path):
    doc = Document()
    doc.add_heading('SAMPLE AGREEMENT', 0)
    doc.add_paragraph('This Agreement is entered into as of February 15, 2024, by and between:')
    doc.add_paragraph('')
    doc.add_paragraph('2.2 The purchase price shall be $75,000 USD, payable within 45 days of delivery.')
    doc.add_paragraph('5.2 Either party may terminate this Agreement upon 30 days written notice.')
    doc.add_paragraph('5.3 Upon termination, Buyer shall return all Confidential Information to Seller.')
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = 'Name'
    table.cell(0, 1).text = 'Role'
    table.cell(1, 0).text = 'John Smith'
    table.cell(1, 1).text = 'Senior Software Engineer'
    doc.save(path)


@pytest.fixture
def contracts(tmp_path):
    original = tmp_path / 'contract_v1.docx'
    modified = tmp_path / 'contract_v2.docx'
    create_original_document(str(original))
    create_modified_document(str(modified))
    return str(original), str(modified)


def test_detect_format():
    assert detect_format('a/b/Report.DOCX') == 'docx'
    assert detect_format('sheet.xlsx') == 'xlsx'
    assert detect_format('scan.pdf') == 'pdf'
    assert detect_format('notes.txt') is None


def test_parse_docx(contracts):
    content = parse_docx(contracts[0])

    assert content.name == 'contract_v1.docx'
    assert content.format == 'docx'
    assert content.texts == [
        'SAMPLE AGREEMENT',
        'This Agreement is entered into as of January 1, 2024, by and between:',
        '2.2 The purchase price shall be $50,000 USD, payable within 30 days of delivery.',
        '5.2 Either party may terminate this Agreement upon 30 days written notice.',
        'Name | Role',
        'John Smith | Software Engineer',
    ]
    assert [p.id for p in content.paragraphs] == [f'p-{i}' for i in range(6)]
    assert [p.position.index for p in content.paragraphs] == list(range(6))
    assert content.metadata['table_count'] == 1
    assert '<p>SAMPLE AGREEMENT</p>' in content.html_content


def test_parse_xlsx(tmp_path):
    path = tmp_path / 'team.xlsx'
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Team'
    ws.append(['Name', 'Role'])
    ws.append(['Jane Doe', 'Product Manager'])
    other = wb.create_sheet('Budget')
    other.append(['Total', 1200])
    wb.save(str(path))

    content = parse_xlsx(str(path))

    assert content.texts == [
        '[Sheet: Team]',
        'Name\tRole',
        'Jane Doe\tProduct Manager',
        '[Sheet: Budget]',
        'Total\t1200',
    ]
    assert [p.position.sheet for p in content.paragraphs] == ['Team', 'Team', 'Team', 'Budget', 'Budget']
    assert content.metadata['sheet_count'] == 2


def test_parse_pdf(tmp_path):
    path = str(tmp_path / 'memo.pdf')
    PdfGenerator(path).generate_plain([
        'The first paragraph of the memo.',
        'The second paragraph of the memo.',
    ])

    content = parse_pdf(path)

    text = ' '.join(content.texts)
    assert 'The first paragraph of the memo.' in text
    assert 'The second paragraph of the memo.' in text
    assert text.index('first') < text.index('second')
    assert all(p.position.page == 1 for p in content.paragraphs)
    assert content.metadata['page_count'] == 1


def test_parse_document_errors(tmp_path):
    with pytest.raises(UnsupportedFormatError):
        parse_document(str(tmp_path / 'notes.txt'))
    for legacy in ('contract.doc', 'budget.xls'):
        assert detect_format(legacy) is None
        with pytest.raises(UnsupportedFormatError):
            parse_document(str(tmp_path / legacy))

    broken = tmp_path / 'broken.docx'
    broken.write_bytes(b'not a zip archive')
    with pytest.raises(DocumentParseError):
        parse_document(str(broken))


def test_compare_parsed_documents(contracts):
    result = compare(parse_document(contracts[0]), parse_document(contracts[1]))
    by_type = {}
    for diff in result.diffs:
        by_type.setdefault(diff.type, []).append(diff)

    assert [d.modified.text for d in by_type[ChangeType.ADDED]] == [
        '5.3 Upon termination, Buyer shall return all Confidential Information to Seller.'
    ]
    assert ChangeType.REMOVED not in by_type
    modified_texts = [d.modified.text for d in by_type[ChangeType.MODIFIED]]
    assert 'John Smith | Senior Software Engineer' in modified_texts
    assert result.stats.modifications == 3


def test_word_redline(tmp_path):
    result = compare(DocumentContent.from_texts('a', ['Intro', 'The cat sat.']),
                     DocumentContent.from_texts('b', ['Intro', 'The dog sat.', 'Brand new line']))
    path = str(tmp_path / 'redline.docx')
    write_word_redline(result, path)

    paragraphs = {p.text: p for p in Document(path).paragraphs}
    runs = paragraphs['The catdog sat.'].runs
    assert [r.text for r in runs] == ['The ', 'cat', 'dog', ' sat.']
    assert runs[1].font.strike is True
    assert runs[2].bold is True
    assert paragraphs['Brand new line'].runs[0].bold is True


def test_pdf_redline(tmp_path):
    result = compare(DocumentContent.from_texts('a', ['The cat sat.']),
                     DocumentContent.from_texts('b', ['The dog sat.']))
    path = str(tmp_path / 'redline.pdf')
    write_pdf_redline(result, path)

    with fitz.open(path) as pdf:
        text = ''.join(page.get_text() for page in pdf)
    assert 'cat' in text and 'dog' in text


def test_empty_pdf_redline(tmp_path):
    result = compare(DocumentContent.from_texts('a', []), DocumentContent.from_texts('b', []))
    path = str(tmp_path / 'empty.pdf')
    write_redline(result, path)

    with fitz.open(path) as pdf:
        assert 'No differences found.' in pdf[0].get_text()


@pytest.mark.parametrize('name', ['merged.docx', 'merged.html', 'merged.txt'])
def test_write_merged(tmp_path, name):
    result = compare(DocumentContent.from_texts('v1.docx', ['Keep', 'Old text here']),
                     DocumentContent.from_texts('v2.docx', ['Keep', 'New text here', 'Extra']))
    path = tmp_path / name
    write_merged(result.diffs, accept_all(result.diffs), str(path), title='v1.docx')

    if name.endswith('.docx'):
        texts = [p.text for p in Document(str(path)).paragraphs if p.text]
        assert texts == ['Keep', 'New text here', 'Extra']
    elif name.endswith('.html'):
        html = path.read_text(encoding='utf-8')
        assert '<p>New text here</p>' in html and 'v1.docx' in html
    else:
        assert path.read_text(encoding='utf-8') == 'Keep\nNew text here\nExtra\n'


def test_cli_writes_outputs(contracts, tmp_path, capsys):
    report = tmp_path / 'report.txt'
    data = tmp_path / 'comparison.json'
    merged = tmp_path / 'merged.txt'

    code = main([contracts[0], contracts[1], '--report', str(report), '--json', str(data),
                 '--merged', str(merged), '--accept-all', '--html-changes'])

    assert code == 0
    out = capsys.readouterr().out
    assert 'COMPARISON COMPLETE' in out
    assert 'Rendered changes:' in out

    stored = json.loads(data.read_text(encoding='utf-8'))
    assert stored['stats']['additions'] == 1
    assert stored['originalDoc']['name'] == 'contract_v1.docx'
    assert 'ADDED' in report.read_text(encoding='utf-8')
    assert merged.read_text(encoding='utf-8').splitlines() == parse_document(contracts[1]).texts


def test_cli_reports_failure(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / 'a.txt'), str(tmp_path / 'b.txt')])

    assert excinfo.value.code == 1
    assert 'COMPARISON FAILED' in capsys.readouterr().out


def test_control_characters_in_extracted_text(tmp_path):
    assert render_html(make_paragraphs(['Page one\x0cPage two']), 'pdf-content') == (
        '<div class="pdf-content"><p>Page one Page two</p></div>'
    )

    result = compare(DocumentContent.from_texts('a', ['Tab\x0bbed']),
                     DocumentContent.from_texts('b', ['Tab\x0bbed', 'Form\x0cfeed']))
    path = str(tmp_path / 'redline.docx')
    write_word_redline(result, path)
    assert [p.text for p in Document(path).paragraphs] == ['Tab bed', 'Form feed']

    pdf_path = str(tmp_path / 'redline.pdf')
    write_pdf_redline(result, pdf_path)
    with fitz.open(pdf_path) as pdf:
        assert 'feed' in pdf[0].get_text()
