"""Command-line interface."""

import argparse
import json
import logging
import sys

from .diff_engine import SIMILARITY_THRESHOLD, compare, generate_diff_text
from .export import write_merged, write_redline, write_report
from .html_changes import compare_html
from .ingest import parse_document
from .merge import accept_all


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='docdiff',
        description='Compare two documents paragraph by paragraph and optionally merge them.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s original.docx modified.docx
  %(prog)s original.pdf modified.pdf --redline redline.pdf
  %(prog)s old.xlsx new.xlsx --accept-all --merged merged.docx
        """
    )
    parser.add_argument('original', help='Path to original document (Word, PDF or Excel)')
    parser.add_argument('modified', help='Path to modified document (Word, PDF or Excel)')
    parser.add_argument('--threshold', type=float, default=SIMILARITY_THRESHOLD,
                        help='Similarity needed to report an edited paragraph as modified '
                             '(default: %(default)s)')
    parser.add_argument('--strict', action='store_true',
                        help='Only pair identical paragraphs; edits become removed + added')
    parser.add_argument('--report', metavar='PATH', help='Write a plain-text change report')
    parser.add_argument('--redline', metavar='PATH', help='Write a redlined .docx or .pdf')
    parser.add_argument('--merged', metavar='PATH',
                        help='Write the merged document (.docx, .pdf, .html or text)')
    parser.add_argument('--accept-all', action='store_true',
                        help='Accept every change when merging (default keeps the original)')
    parser.add_argument('--json', metavar='PATH', help='Write the comparison as JSON')
    parser.add_argument('--html-changes', action='store_true',
                        help='Also list changes found in the rendered HTML of both documents')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def run(args: argparse.Namespace) -> int:
    print(f"Original: {args.original}")
    print(f"Modified: {args.modified}")
    print()

    print("Extracting paragraphs...")
    original = parse_document(args.original)
    modified = parse_document(args.modified)
    print(f"  Original: {len(original.paragraphs)} paragraphs")
    print(f"  Modified: {len(modified.paragraphs)} paragraphs")

    print("Computing differences...")
    threshold = None if args.strict else args.threshold
    comparison = compare(original, modified, similarity_threshold=threshold)
    stats = comparison.stats

    if args.report:
        write_report(comparison, args.report)
        print(f"Report saved to: {args.report}")
    if args.redline:
        write_redline(comparison, args.redline)
        print(f"Redline saved to: {args.redline}")
    if args.merged:
        actions = accept_all(comparison.diffs) if args.accept_all else {}
        write_merged(comparison.diffs, actions, args.merged, title=original.name)
        print(f"Merged document saved to: {args.merged}")
    if args.json:
        with open(args.json, 'w', encoding='utf-8') as fh:
            json.dump(comparison.to_dict(), fh, ensure_ascii=False, indent=2)
        print(f"JSON saved to: {args.json}")

    print()
    print("=" * 60)
    print("COMPARISON COMPLETE")
    print("=" * 60)
    print(f"Total changes: {stats.total_changes}")
    print(f"Additions: {stats.additions}")
    print(f"Deletions: {stats.deletions}")
    print(f"Modifications: {stats.modifications}")
    print(f"Words added/removed: {stats.words.added}/{stats.words.removed}")
    print(f"Characters added/removed: {stats.chars.added}/{stats.chars.removed}")

    if args.html_changes and original.html_content and modified.html_content:
        extracted = compare_html(original.html_content, modified.html_content)
        print()
        print(f"Rendered changes: {len(extracted.changes)}")
        for change in extracted.changes:
            if change.old_text is not None:
                print(f"  [{change.id}] {change.type}: {change.old_text!r} -> {change.text!r}")
            else:
                print(f"  [{change.id}] {change.type}: {change.text!r}")

    if not any((args.report, args.redline, args.merged, args.json)):
        print()
        print(generate_diff_text(comparison))

    return 0


def main(argv=None):
    """Command-line entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    print("=" * 60)
    print("Document Comparison Tool")
    print("=" * 60)
    print()

    try:
        return run(args)
    except Exception as e:
        if args.verbose:
            logging.getLogger(__name__).exception("Comparison failed")
        print()
        print("=" * 60)
        print("COMPARISON FAILED")
        print("=" * 60)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    sys.exit(main())
