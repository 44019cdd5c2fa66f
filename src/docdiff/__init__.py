"""
docdiff - Document comparison and merge library.

Compare two versions of a Word, PDF or Excel document:
- Paragraph-level additions, removals and modifications
- Word-level highlighting inside modified paragraphs
- Change statistics
- Merging with per-change accept/reject decisions
- Change navigation over the rendered HTML diff
"""

from .diff_engine import (
    compare,
    diff_paragraphs,
    diff_sequences,
    generate_diff_text,
)

from .html_changes import (
    compare_html,
    diff_html,
    extract_changes,
    pair_markers,
)

from .merge import (
    accept_all,
    reconstruct,
    reconstruct_html,
    reject_all,
)

from .models import (
    ChangeType,
    ComparisonResult,
    DiffResult,
    DocumentContent,
    MergeAction,
    MergeDecision,
    MergeState,
    Paragraph,
    Position,
    RenderedChange,
    Stats,
    WordDiffSpan,
    generate_short_id,
)

from .stats import compute_stats
from .word_diff import char_diff, word_diff

__version__ = "1.0.0"
__all__ = [
    "compare",
    "diff_paragraphs",
    "diff_sequences",
    "generate_diff_text",
    "compare_html",
    "diff_html",
    "extract_changes",
    "pair_markers",
    "accept_all",
    "reconstruct",
    "reconstruct_html",
    "reject_all",
    "ChangeType",
    "ComparisonResult",
    "DiffResult",
    "DocumentContent",
    "MergeAction",
    "MergeDecision",
    "MergeState",
    "Paragraph",
    "Position",
    "RenderedChange",
    "Stats",
    "WordDiffSpan",
    "generate_short_id",
    "compute_stats",
    "char_diff",
    "word_diff",
]
