"""Change statistics derived from a paragraph diff."""

import re
from typing import Iterable

from .models import ChangeType, Counts, DiffResult, Stats

WHITESPACE_RUN = re.compile(r'\s+')


def count_words(text: str) -> int:
    # Pieces between whitespace runs, empty edges included, so an empty
    # paragraph counts as one word. Stored statistics depend on this.
    return len(WHITESPACE_RUN.split(text))


def _credit(counts: Counts, original: int, modified: int) -> None:
    if modified > original:
        counts.added += modified - original
    else:
        counts.removed += original - modified


def compute_stats(diffs: Iterable[DiffResult]) -> Stats:
    """Count changes by type and tally added/removed words and characters."""
    stats = Stats()

    for diff in diffs:
        if diff.type == ChangeType.ADDED:
            stats.additions += 1
            stats.words.added += count_words(diff.modified.text)
            stats.chars.added += len(diff.modified.text)
        elif diff.type == ChangeType.REMOVED:
            stats.deletions += 1
            stats.words.removed += count_words(diff.original.text)
            stats.chars.removed += len(diff.original.text)
        elif diff.type == ChangeType.MODIFIED:
            # Net difference only, credited to whichever side grew.
            stats.modifications += 1
            _credit(stats.words, count_words(diff.original.text), count_words(diff.modified.text))
            _credit(stats.chars, len(diff.original.text), len(diff.modified.text))

    stats.total_changes = stats.additions + stats.deletions + stats.modifications
    return stats
