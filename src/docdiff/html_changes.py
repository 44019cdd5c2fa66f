"""
Change list for the rendered (HTML) view of a comparison.

The two HTML renderings are diffed with ``lxml.html.diff``, which wraps
inserted content in ``<ins>`` and deleted content in ``<del>``. The markers
are then walked in document order and turned into a flat list of changes.
Each change is tagged in the markup with ``id="change-N"`` so a viewer can
scroll to it.

A deletion directly followed by an insertion is reported as one modified
change. This relies on the diff putting a substitution's ``<del>`` right
before its ``<ins>`` with no other marker in between; when an unrelated
marker sits between them the pair is not merged (or the wrong markers are
merged). :func:`diff_html` reorders lxml's output to meet that ordering.
"""

import logging
from dataclasses import dataclass
from html import escape
from typing import List, Optional, Sequence, Tuple

from lxml import etree
from lxml.html import HtmlElement, fragment_fromstring
from lxml.html.diff import htmldiff

from .models import ChangeType, RenderedChange

logger = logging.getLogger(__name__)

INSERT_TAG = 'ins'
DELETE_TAG = 'del'

# Change texts longer than this are clipped and suffixed with '...'
MAX_CHANGE_TEXT = 200


@dataclass
class ExtractedChanges:
    changes: List[RenderedChange]
    injected_html: str


def _parse_fragment(markup: str) -> HtmlElement:
    return fragment_fromstring(markup, create_parent='div')


def _inner_html(root: HtmlElement) -> str:
    parts = [escape(root.text, quote=False)] if root.text else []
    parts.extend(etree.tostring(child, encoding='unicode', method='html') for child in root)
    return ''.join(parts)


def _marker_text(marker: HtmlElement) -> str:
    return marker.text_content().strip()


def _truncate(text: str) -> str:
    if len(text) > MAX_CHANGE_TEXT:
        return text[:MAX_CHANGE_TEXT] + '...'
    return text


def _deletions_first(root: HtmlElement) -> int:
    """Move each <del> that directly follows an <ins> in front of it."""
    swapped = 0
    for ins in list(root.iter(INSERT_TAG)):
        following = ins.getnext()
        if following is None or following.tag != DELETE_TAG or (ins.tail or '').strip():
            continue
        gap = ins.tail
        ins.tail = following.tail
        following.tail = gap
        ins.addprevious(following)
        swapped += 1
    return swapped


def diff_html(old_html: str, new_html: str) -> str:
    """Diff two HTML fragments, marking insertions with <ins> and deletions with <del>."""
    marked = htmldiff(old_html, new_html)
    root = _parse_fragment(marked)
    if not _deletions_first(root):
        return marked
    return _inner_html(root)


def pair_markers(markers: Sequence[HtmlElement]) -> List[Tuple[HtmlElement, Optional[HtmlElement]]]:
    """
    Group markers into changes.

    Returns ``(deletion, insertion)`` for a substitution and ``(marker, None)``
    for a standalone marker. A deletion pairs with the marker right after it
    in ``markers`` when that one is an insertion; no other lookahead is done.
    Markers with blank text never start a change.
    """
    groups = []
    i = 0

    while i < len(markers):
        current = markers[i]
        if not _marker_text(current):
            i += 1
            continue

        following = markers[i + 1] if i + 1 < len(markers) else None
        if current.tag == DELETE_TAG and following is not None and following.tag == INSERT_TAG:
            groups.append((current, following))
            i += 2
        else:
            groups.append((current, None))
            i += 1

    return groups


def _tag(marker: HtmlElement, element_id: str, change_id: str, diff_type: str) -> None:
    marker.set('id', element_id)
    marker.set('data-diff-id', change_id)
    marker.set('data-diff-type', diff_type)


def extract_changes(marked_up_html: str) -> ExtractedChanges:
    """
    List the changes in diff markup and tag their elements.

    Returns the changes, ordered and numbered ``change-0``, ``change-1``, ...
    and the markup with ``id``/``data-diff-*`` attributes added to the
    marker elements. Markup without markers is returned untouched.
    """
    if not marked_up_html or not marked_up_html.strip():
        return ExtractedChanges([], marked_up_html or '')

    try:
        root = _parse_fragment(marked_up_html)
    except (etree.ParserError, ValueError) as e:
        logger.warning("Could not parse diff markup: %s", e)
        return ExtractedChanges([], marked_up_html)

    markers = list(root.iter(INSERT_TAG, DELETE_TAG))
    if not markers:
        return ExtractedChanges([], marked_up_html)

    changes = []
    for index, (first, second) in enumerate(pair_markers(markers)):
        change_id = f'change-{index}'

        if second is not None:
            changes.append(RenderedChange(
                id=change_id,
                type=ChangeType.MODIFIED,
                text=_truncate(_marker_text(second)),
                old_text=_truncate(_marker_text(first)),
                index=index
            ))
            _tag(first, change_id, change_id, 'modified-old')
            _tag(second, f'{change_id}-new', change_id, 'modified-new')
        else:
            change_type = ChangeType.ADDED if first.tag == INSERT_TAG else ChangeType.REMOVED
            changes.append(RenderedChange(
                id=change_id,
                type=change_type,
                text=_truncate(_marker_text(first)),
                index=index
            ))
            _tag(first, change_id, change_id, change_type)

    logger.debug("Extracted %d changes from %d markers", len(changes), len(markers))
    return ExtractedChanges(changes, _inner_html(root))


def compare_html(old_html: str, new_html: str) -> ExtractedChanges:
    """Diff two renderings and extract the change list in one step."""
    return extract_changes(diff_html(old_html, new_html))
