"""
Rebuild a document from a diff and per-change merge decisions.

Accepting a change always takes the modified side, rejecting always keeps the
original side. Changes without a decision keep the original, so an empty set
of actions reproduces the original document.
"""

from typing import Dict, Iterable, List, Mapping, Union

from lxml import etree
from lxml.html import builder as E

from .models import ChangeType, DiffResult, MergeAction, MergeDecision, MergeState, xml_safe

Actions = Union[Mapping[str, str], MergeState, Iterable[MergeAction], None]

MERGED_STYLE = (
    "body { font-family: sans-serif; line-height: 1.6; max-width: 800px; "
    "margin: 0 auto; padding: 2rem; } p { margin-bottom: 1em; }"
)


def _action_map(actions: Actions) -> Mapping[str, str]:
    if actions is None:
        return {}
    if isinstance(actions, MergeState):
        return actions.as_mapping()
    if isinstance(actions, Mapping):
        return actions
    return MergeState.from_actions(actions).as_mapping()


def _resolve(diff: DiffResult, action: str):
    """Text kept for one diff, or None when the diff is dropped."""
    if diff.type == ChangeType.UNCHANGED:
        paragraph = diff.original if diff.original is not None else diff.modified
        return paragraph.text
    if diff.type == ChangeType.ADDED:
        return diff.modified.text if action == MergeDecision.ACCEPT else None
    if diff.type == ChangeType.REMOVED:
        return None if action == MergeDecision.ACCEPT else diff.original.text
    if diff.type == ChangeType.MODIFIED:
        return diff.modified.text if action == MergeDecision.ACCEPT else diff.original.text
    raise ValueError(f"Unknown change type: {diff.type}")


def resolve_lines(diffs: Iterable[DiffResult], actions: Actions = None) -> List[str]:
    """Paragraph texts of the merged document, in order."""
    action_map = _action_map(actions)
    lines = []

    for diff in diffs:
        text = _resolve(diff, action_map.get(diff.id, MergeDecision.PENDING))
        if text is not None:
            lines.append(text)

    return lines


def reconstruct(diffs: Iterable[DiffResult], actions: Actions = None) -> str:
    """Merged document text, one line per kept paragraph."""
    return ''.join(line + '\n' for line in resolve_lines(diffs, actions))


def reconstruct_html(diffs: Iterable[DiffResult], actions: Actions = None,
                     title: str = 'Document') -> str:
    """Merged document as a standalone HTML page, one <p> per non-blank line."""
    content = reconstruct(diffs, actions)
    paragraphs = [E.P(xml_safe(line)) for line in content.split('\n') if line.strip()]
    title = xml_safe(title)

    page = E.HTML(
        E.HEAD(
            E.META(charset='utf-8'),
            E.TITLE(f'Merged Document - {title}'),
            E.STYLE(MERGED_STYLE)
        ),
        E.BODY(
            E.H1(f'Merged: {title}'),
            E.HR(),
            *paragraphs
        )
    )
    return '<!DOCTYPE html>\n' + etree.tostring(page, encoding='unicode', method='html')


def _decide_all(diffs: Iterable[DiffResult], decision: str) -> Dict[str, str]:
    return {diff.id: decision for diff in diffs if diff.is_change}


def accept_all(diffs: Iterable[DiffResult]) -> Dict[str, str]:
    return _decide_all(diffs, MergeDecision.ACCEPT)


def reject_all(diffs: Iterable[DiffResult]) -> Dict[str, str]:
    return _decide_all(diffs, MergeDecision.REJECT)
