"""
Paragraph-level comparison of two documents.

Paragraph texts are first diffed as whole strings. Wherever a run of removed
paragraphs is directly followed by a run of added ones, the two runs are
aligned again by similarity so that edited paragraphs are reported as
modified (with a word-level diff) rather than as a removal plus an addition.
"""

import difflib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple, Union

from .models import (
    ChangeType, ComparisonResult, DiffResult, DocumentContent, Paragraph, new_id
)
from .stats import compute_stats
from .word_diff import word_diff

logger = logging.getLogger(__name__)

# Two paragraphs inside a substitution are treated as one edited paragraph
# when their similarity reaches this value.
SIMILARITY_THRESHOLD = 0.4

# Substitutions with more removed x added paragraph pairs than this are
# reported as plain removals and additions without similarity pairing.
MAX_ALIGNMENT_CELLS = 10000


@dataclass(frozen=True)
class Added:
    values: Tuple[str, ...]


@dataclass(frozen=True)
class Removed:
    values: Tuple[str, ...]


@dataclass(frozen=True)
class UnchangedRun:
    values: Tuple[str, ...]


Part = Union[Added, Removed, UnchangedRun]


def diff_sequences(original: Sequence[str], modified: Sequence[str]) -> List[Part]:
    """
    Diff two lists of strings element by element.

    A replaced block is returned as ``Removed`` followed by ``Added``.
    """
    matcher = difflib.SequenceMatcher(None, list(original), list(modified), autojunk=False)
    parts = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == 'equal':
            parts.append(UnchangedRun(tuple(original[i1:i2])))
        if tag in ('delete', 'replace'):
            parts.append(Removed(tuple(original[i1:i2])))
        if tag in ('insert', 'replace'):
            parts.append(Added(tuple(modified[j1:j2])))

    return parts


def _word_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity of the lowercased word sets."""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())
    union = len(words1 | words2)
    return len(words1 & words2) / union if union else 0.0


def calculate_similarity(text1: str, text2: str) -> float:
    """Calculate similarity between two texts using multiple methods."""
    if text1 == text2:
        return 1.0

    text1 = text1.strip()
    text2 = text2.strip()

    if not text1 and not text2:
        return 1.0
    if not text1 or not text2:
        return 0.0

    word_sim = _word_similarity(text1, text2)
    seq_sim = difflib.SequenceMatcher(None, text1.lower(), text2.lower()).ratio()

    return max(word_sim, seq_sim)


def is_similar(text1: str, text2: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    """
    Same as ``calculate_similarity(text1, text2) >= threshold``.

    The character ratio is only computed when the word similarity falls short
    and difflib's cheap upper bounds still reach the threshold.
    """
    if text1 == text2:
        return True

    stripped1 = text1.strip()
    stripped2 = text2.strip()
    if not stripped1 or not stripped2:
        return calculate_similarity(text1, text2) >= threshold

    if _word_similarity(stripped1, stripped2) >= threshold:
        return True

    matcher = difflib.SequenceMatcher(None, stripped1.lower(), stripped2.lower())
    return (matcher.real_quick_ratio() >= threshold
            and matcher.quick_ratio() >= threshold
            and matcher.ratio() >= threshold)


def align_paragraphs(orig_texts: Sequence[str], mod_texts: Sequence[str],
                     threshold: float = SIMILARITY_THRESHOLD) -> List[Tuple[int, int, str]]:
    """
    Align paragraphs using LCS over similarity.

    Returns ``(orig_idx, mod_idx, kind)`` triples in document order, where
    kind is ``'match'``, ``'insert'`` (orig_idx is -1) or ``'delete'``
    (mod_idx is -1). Every index of both inputs appears exactly once.
    """
    m, n = len(orig_texts), len(mod_texts)
    similar = [[is_similar(orig_texts[i], mod_texts[j], threshold)
                for j in range(n)] for i in range(m)]

    # Build LCS table
    lcs = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if similar[i-1][j-1]:
                lcs[i][j] = lcs[i-1][j-1] + 1
            else:
                lcs[i][j] = max(lcs[i-1][j], lcs[i][j-1])

    # Backtrack
    alignments = []
    i, j = m, n

    while i > 0 or j > 0:
        if i > 0 and j > 0 and similar[i-1][j-1]:
            alignments.append((i-1, j-1, 'match'))
            i -= 1
            j -= 1
            continue

        if j > 0 and (i == 0 or lcs[i][j-1] >= lcs[i-1][j]):
            alignments.append((-1, j-1, 'insert'))
            j -= 1
        else:
            alignments.append((i-1, -1, 'delete'))
            i -= 1

    alignments.reverse()
    return alignments


def _pair(original: Paragraph, modified: Paragraph) -> DiffResult:
    if original.text == modified.text:
        return DiffResult.unchanged(original, modified)
    return DiffResult.changed(original, modified, word_diff(original.text, modified.text))


def _align_substitution(removed: Sequence[Paragraph], added: Sequence[Paragraph],
                        threshold: float) -> List[DiffResult]:
    if len(removed) * len(added) > MAX_ALIGNMENT_CELLS:
        logger.debug("Skipping similarity pairing for %d removed x %d added paragraphs",
                     len(removed), len(added))
        return ([DiffResult.removed(p) for p in removed]
                + [DiffResult.added(p) for p in added])

    results = []
    alignments = align_paragraphs([p.text for p in removed], [p.text for p in added], threshold)

    for orig_idx, mod_idx, kind in alignments:
        if kind == 'match':
            results.append(_pair(removed[orig_idx], added[mod_idx]))
        elif kind == 'insert':
            results.append(DiffResult.added(added[mod_idx]))
        else:
            results.append(DiffResult.removed(removed[orig_idx]))

    return results


def diff_paragraphs(original: Sequence[Paragraph], modified: Sequence[Paragraph],
                    similarity_threshold: Optional[float] = SIMILARITY_THRESHOLD) -> List[DiffResult]:
    """
    Build the full edit script between two paragraph sequences.

    Paragraphs are consumed strictly in order from both sides, so reading the
    ``original`` (or ``modified``) paragraph of every result reproduces that
    document. ``similarity_threshold=None`` disables pairing inside
    substitutions.
    """
    parts = diff_sequences([p.text for p in original], [p.text for p in modified])
    diffs = []
    orig_idx = 0
    mod_idx = 0
    k = 0

    while k < len(parts):
        part = parts[k]
        following = parts[k + 1] if k + 1 < len(parts) else None

        if isinstance(part, UnchangedRun):
            # Paired by position within the run; texts are re-checked.
            for _ in part.values:
                diffs.append(_pair(original[orig_idx], modified[mod_idx]))
                orig_idx += 1
                mod_idx += 1
        elif isinstance(part, Removed):
            removed = original[orig_idx:orig_idx + len(part.values)]
            orig_idx += len(removed)
            if similarity_threshold is not None and isinstance(following, Added):
                added = modified[mod_idx:mod_idx + len(following.values)]
                mod_idx += len(added)
                diffs.extend(_align_substitution(removed, added, similarity_threshold))
                k += 1
            else:
                diffs.extend(DiffResult.removed(p) for p in removed)
        elif isinstance(part, Added):
            for paragraph in modified[mod_idx:mod_idx + len(part.values)]:
                diffs.append(DiffResult.added(paragraph))
                mod_idx += 1
        else:
            raise TypeError(f"Unexpected diff part: {part!r}")
        k += 1

    return diffs


def compare(original: DocumentContent, modified: DocumentContent,
            similarity_threshold: Optional[float] = SIMILARITY_THRESHOLD) -> ComparisonResult:
    """
    Compare two documents paragraph by paragraph.

    Args:
        original: Original document content
        modified: Modified document content
        similarity_threshold: Minimum similarity for an edited paragraph to be
            reported as modified; None only reports exact matches

    Returns:
        ComparisonResult with the full edit script and its statistics
    """
    logger.debug("Comparing %s (%d paragraphs) with %s (%d paragraphs)",
                 original.name, len(original.paragraphs),
                 modified.name, len(modified.paragraphs))

    diffs = diff_paragraphs(original.paragraphs, modified.paragraphs, similarity_threshold)
    stats = compute_stats(diffs)

    logger.debug("Found %d changes (%d added, %d removed, %d modified)",
                 stats.total_changes, stats.additions, stats.deletions, stats.modifications)

    return ComparisonResult(
        id=new_id(),
        created_at=datetime.now(timezone.utc),
        original_doc=original,
        modified_doc=modified,
        diffs=diffs,
        stats=stats
    )


def generate_diff_text(comparison: ComparisonResult) -> str:
    """Plain-text report of a comparison, changed paragraphs only."""
    stats = comparison.stats
    lines = [
        f"Comparison: {comparison.original_doc.name} vs {comparison.modified_doc.name}",
        f"Generated: {comparison.created_at.isoformat()}",
        "",
        "--- Statistics ---",
        f"Total Changes: {stats.total_changes}",
        f"Additions: {stats.additions}",
        f"Deletions: {stats.deletions}",
        f"Modifications: {stats.modifications}",
        "",
        "--- Changes ---",
        "",
    ]

    for number, diff in enumerate(comparison.diffs, 1):
        if diff.type == ChangeType.UNCHANGED:
            continue
        lines.append(f"[{number}] {diff.type.upper()}")
        if diff.original is not None:
            lines.append(f"  - {diff.original.text}")
        if diff.modified is not None:
            lines.append(f"  + {diff.modified.text}")
        lines.append("")

    return "\n".join(lines) + "\n"
