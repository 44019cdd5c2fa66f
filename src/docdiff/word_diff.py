"""
Word-level refinement of two versions of a paragraph.

The texts are split into words and the whitespace between them, aligned with
difflib, and returned as runs of unchanged / removed / added text.
"""

import difflib
import re
from typing import List, Sequence

from .models import ChangeType, WordDiffSpan

TOKEN_PATTERN = re.compile(r'\S+|\s+')


def tokenize(text: str) -> List[str]:
    """Split text into words while preserving whitespace."""
    return TOKEN_PATTERN.findall(text)


def _diff_tokens(orig_tokens: Sequence[str], mod_tokens: Sequence[str]) -> List[WordDiffSpan]:
    matcher = difflib.SequenceMatcher(None, orig_tokens, mod_tokens, autojunk=False)
    result = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == 'equal':
            text = ''.join(orig_tokens[i1:i2])
            if text:
                result.append(WordDiffSpan(text, ChangeType.UNCHANGED))
        elif tag == 'delete':
            text = ''.join(orig_tokens[i1:i2])
            if text:
                result.append(WordDiffSpan(text, ChangeType.REMOVED))
        elif tag == 'insert':
            text = ''.join(mod_tokens[j1:j2])
            if text:
                result.append(WordDiffSpan(text, ChangeType.ADDED))
        elif tag == 'replace':
            del_text = ''.join(orig_tokens[i1:i2])
            ins_text = ''.join(mod_tokens[j1:j2])
            if del_text:
                result.append(WordDiffSpan(del_text, ChangeType.REMOVED))
            if ins_text:
                result.append(WordDiffSpan(ins_text, ChangeType.ADDED))

    return result


def word_diff(original: str, modified: str) -> List[WordDiffSpan]:
    """
    Compute word-level diff between two texts.

    Joining the unchanged and removed spans gives back ``original``; joining
    the unchanged and added spans gives back ``modified``. A substitution is
    reported as a removed span immediately followed by an added span.
    """
    return _diff_tokens(tokenize(original), tokenize(modified))


def char_diff(original: str, modified: str) -> List[WordDiffSpan]:
    """Same as :func:`word_diff` at single-character granularity."""
    return _diff_tokens(list(original), list(modified))
