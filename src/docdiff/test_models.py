"""Tests for the data model and its persisted form."""

import json
from datetime import datetime, timezone

import pytest

from docdiff.diff_engine import compare
from docdiff.models import (
    ChangeType, ComparisonResult, DiffResult, DocumentContent, MergeAction,
    MergeDecision, Paragraph, Position, RenderedChange, SHORT_ID_ALPHABET,
    generate_short_id
)


def para(text, index=0):
    return Paragraph(id=f'p-{index}', text=text, position=Position(index=index))


@pytest.mark.parametrize("kwargs", [
    {'type': ChangeType.ADDED, 'original': para("a"), 'modified': para("a")},
    {'type': ChangeType.ADDED},
    {'type': ChangeType.REMOVED, 'modified': para("a")},
    {'type': ChangeType.UNCHANGED, 'original': para("a")},
    {'type': ChangeType.MODIFIED, 'original': para("a"), 'modified': para("b")},
    {'type': ChangeType.UNCHANGED, 'original': para("a"), 'modified': para("a"), 'word_diffs': []},
    {'type': 'moved', 'original': para("a"), 'modified': para("a")},
])
def test_diff_result_rejects_inconsistent_shapes(kwargs):
    with pytest.raises(ValueError):
        DiffResult(id='d1', **kwargs)


def test_merge_action_rejects_unknown_action():
    with pytest.raises(ValueError):
        MergeAction('d1', 'maybe')


def test_comparison_round_trips_through_json():
    original = DocumentContent.from_texts("v1.docx", ["A", "The cat sat.", "B"])
    modified = DocumentContent.from_texts("v2.docx", ["A", "The dog sat.", "C", "D"])
    result = compare(original, modified)

    data = json.loads(json.dumps(result.to_dict()))
    assert data['stats']['totalChanges'] == result.stats.total_changes
    assert 'wordDiffs' in data['diffs'][1]
    assert 'wordDiffs' not in data['diffs'][0]

    restored = ComparisonResult.from_dict(data)
    assert restored.diffs == result.diffs
    assert restored.stats == result.stats
    assert restored.created_at == result.created_at
    assert restored.original_doc.texts == original.texts
    assert restored.modified_doc.name == "v2.docx"


def test_from_dict_reads_utc_z_timestamps():
    result = compare(DocumentContent.from_texts("a", ["x"]), DocumentContent.from_texts("b", ["y"]))
    data = result.to_dict()
    data['createdAt'] = '2024-03-05T10:15:30.123Z'

    restored = ComparisonResult.from_dict(data)
    assert restored.created_at == datetime(2024, 3, 5, 10, 15, 30, 123000, tzinfo=timezone.utc)

    action = MergeAction.from_dict({'diffId': 'd1', 'action': 'accept',
                                    'timestamp': '2024-03-05T10:15:30.000Z'})
    assert action.timestamp == datetime(2024, 3, 5, 10, 15, 30, tzinfo=timezone.utc)


def test_position_serialization_omits_missing_fields():
    assert Position(index=3).to_dict() == {'index': 3}
    assert Position(index=0, page=2).to_dict() == {'index': 0, 'page': 2}
    assert Position.from_dict({'index': 1, 'sheet': 'Data'}).sheet == 'Data'


def test_merge_action_round_trip():
    action = MergeAction('d1', MergeDecision.REJECT)
    assert MergeAction.from_dict(action.to_dict()) == action


def test_with_id_keeps_everything_else():
    result = compare(DocumentContent.from_texts("a", ["x"]), DocumentContent.from_texts("b", ["y"]))
    stored = result.with_id("Ab3dE9xZ")
    assert stored.id == "Ab3dE9xZ"
    assert stored.diffs is result.diffs
    assert result.id != "Ab3dE9xZ"


def test_generate_short_id():
    short_id = generate_short_id()
    assert len(short_id) == 8
    assert set(short_id) <= set(SHORT_ID_ALPHABET)
    assert len(generate_short_id(12)) == 12


def test_rendered_change_to_dict():
    change = RenderedChange(id='change-0', type=ChangeType.MODIFIED, text='new', old_text='old', index=0)
    assert change.to_dict() == {
        'id': 'change-0', 'type': 'modified', 'text': 'new', 'index': 0, 'oldText': 'old'
    }
    assert 'oldText' not in RenderedChange('change-1', ChangeType.ADDED, 'x', 1).to_dict()
