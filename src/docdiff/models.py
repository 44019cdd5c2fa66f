"""
Data model shared by the diff, merge and change-extraction modules.

Everything here is a plain dataclass. ``to_dict`` produces the camelCase
records a persistence layer stores; ``from_dict`` reads them back so stored
diffs and merge actions can be reconstructed later.
"""

import re
import secrets
import string
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional


class ChangeType:
    UNCHANGED = 'unchanged'
    ADDED = 'added'
    REMOVED = 'removed'
    MODIFIED = 'modified'

    ALL = (UNCHANGED, ADDED, REMOVED, MODIFIED)


class MergeDecision:
    ACCEPT = 'accept'
    REJECT = 'reject'
    PENDING = 'pending'

    ALL = (ACCEPT, REJECT, PENDING)


class DocumentFormat:
    DOCX = 'docx'
    PDF = 'pdf'
    XLSX = 'xlsx'


SHORT_ID_ALPHABET = string.ascii_letters + string.digits

# Characters XML (and so lxml and reportlab) cannot hold.
XML_INCOMPATIBLE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def new_id() -> str:
    return uuid.uuid4().hex


def generate_short_id(length: int = 8) -> str:
    """Random URL-safe identifier used as the persisted comparison id."""
    return ''.join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


def xml_safe(text: str) -> str:
    """Replace control characters that cannot appear in XML with spaces."""
    return XML_INCOMPATIBLE.sub(' ', text)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        # fromisoformat only takes a trailing Z from Python 3.11
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return datetime.fromisoformat(value)
    return _now()


@dataclass(frozen=True)
class Position:
    """Where a paragraph came from in its source document."""
    index: int
    page: Optional[int] = None
    sheet: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'index': self.index}
        if self.page is not None:
            data['page'] = self.page
        if self.sheet is not None:
            data['sheet'] = self.sheet
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Position':
        return cls(index=data['index'], page=data.get('page'), sheet=data.get('sheet'))


@dataclass(frozen=True)
class Paragraph:
    """One line, row or text block of a document."""
    id: str
    text: str
    position: Position

    def to_dict(self) -> dict:
        return {'id': self.id, 'text': self.text, 'position': self.position.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> 'Paragraph':
        return cls(
            id=data['id'],
            text=data['text'],
            position=Position.from_dict(data.get('position', {'index': 0}))
        )


def make_paragraphs(texts: List[str], **position) -> List[Paragraph]:
    """Build ``p-N`` paragraphs from bare strings."""
    return [
        Paragraph(id=f'p-{i}', text=text, position=Position(index=i, **position))
        for i, text in enumerate(texts)
    ]


@dataclass(frozen=True)
class WordDiffSpan:
    value: str
    type: str

    def to_dict(self) -> dict:
        return {'value': self.value, 'type': self.type}


@dataclass(frozen=True)
class DiffResult:
    """One entry of the paragraph-level edit script."""
    id: str
    type: str
    original: Optional[Paragraph] = None
    modified: Optional[Paragraph] = None
    word_diffs: Optional[List[WordDiffSpan]] = None

    def __post_init__(self):
        if self.type not in ChangeType.ALL:
            raise ValueError(f"Unknown change type: {self.type}")
        if self.type == ChangeType.ADDED and (self.original is not None or self.modified is None):
            raise ValueError("An added diff carries only the modified paragraph")
        if self.type == ChangeType.REMOVED and (self.original is None or self.modified is not None):
            raise ValueError("A removed diff carries only the original paragraph")
        if self.type in (ChangeType.UNCHANGED, ChangeType.MODIFIED) and (
                self.original is None or self.modified is None):
            raise ValueError(f"A {self.type} diff needs both paragraphs")
        if (self.word_diffs is not None) != (self.type == ChangeType.MODIFIED):
            raise ValueError("word_diffs is present exactly when the diff is modified")

    @classmethod
    def added(cls, paragraph: Paragraph) -> 'DiffResult':
        return cls(id=new_id(), type=ChangeType.ADDED, modified=paragraph)

    @classmethod
    def removed(cls, paragraph: Paragraph) -> 'DiffResult':
        return cls(id=new_id(), type=ChangeType.REMOVED, original=paragraph)

    @classmethod
    def unchanged(cls, original: Paragraph, modified: Paragraph) -> 'DiffResult':
        return cls(id=new_id(), type=ChangeType.UNCHANGED, original=original, modified=modified)

    @classmethod
    def changed(cls, original: Paragraph, modified: Paragraph,
                word_diffs: List[WordDiffSpan]) -> 'DiffResult':
        return cls(id=new_id(), type=ChangeType.MODIFIED, original=original,
                   modified=modified, word_diffs=list(word_diffs))

    @property
    def is_change(self) -> bool:
        return self.type != ChangeType.UNCHANGED

    def to_dict(self) -> dict:
        data = {'id': self.id, 'type': self.type}
        if self.original is not None:
            data['original'] = self.original.to_dict()
        if self.modified is not None:
            data['modified'] = self.modified.to_dict()
        if self.word_diffs is not None:
            data['wordDiffs'] = [span.to_dict() for span in self.word_diffs]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'DiffResult':
        word_diffs = data.get('wordDiffs')
        return cls(
            id=data['id'],
            type=data['type'],
            original=Paragraph.from_dict(data['original']) if data.get('original') else None,
            modified=Paragraph.from_dict(data['modified']) if data.get('modified') else None,
            word_diffs=[WordDiffSpan(s['value'], s['type']) for s in word_diffs]
            if word_diffs is not None else None
        )


@dataclass
class Counts:
    added: int = 0
    removed: int = 0

    def to_dict(self) -> dict:
        return {'added': self.added, 'removed': self.removed}


@dataclass
class Stats:
    total_changes: int = 0
    additions: int = 0
    deletions: int = 0
    modifications: int = 0
    words: Counts = field(default_factory=Counts)
    chars: Counts = field(default_factory=Counts)

    def to_dict(self) -> dict:
        return {
            'totalChanges': self.total_changes,
            'additions': self.additions,
            'deletions': self.deletions,
            'modifications': self.modifications,
            'words': self.words.to_dict(),
            'chars': self.chars.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Stats':
        words = data.get('words') or {}
        chars = data.get('chars') or {}
        return cls(
            total_changes=data.get('totalChanges', 0),
            additions=data.get('additions', 0),
            deletions=data.get('deletions', 0),
            modifications=data.get('modifications', 0),
            words=Counts(words.get('added', 0), words.get('removed', 0)),
            chars=Counts(chars.get('added', 0), chars.get('removed', 0))
        )


@dataclass
class DocumentContent:
    """A document as handed over by ingestion: ordered paragraphs plus optional HTML."""
    name: str
    format: str
    paragraphs: List[Paragraph]
    html_content: Optional[str] = None
    id: str = field(default_factory=new_id)
    uploaded_at: datetime = field(default_factory=_now)
    metadata: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_texts(cls, name: str, texts: List[str], format: str = DocumentFormat.DOCX) -> 'DocumentContent':
        return cls(name=name, format=format, paragraphs=make_paragraphs(texts))

    @property
    def texts(self) -> List[str]:
        return [p.text for p in self.paragraphs]

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'name': self.name,
            'format': self.format,
            'uploadedAt': self.uploaded_at.isoformat(),
            'paragraphs': [p.to_dict() for p in self.paragraphs],
            'metadata': dict(self.metadata),
        }
        if self.html_content is not None:
            data['htmlContent'] = self.html_content
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'DocumentContent':
        return cls(
            name=data['name'],
            format=data.get('format', DocumentFormat.DOCX),
            paragraphs=[Paragraph.from_dict(p) for p in data.get('paragraphs', [])],
            html_content=data.get('htmlContent'),
            id=data.get('id') or new_id(),
            uploaded_at=_parse_time(data.get('uploadedAt')),
            metadata=dict(data.get('metadata') or {})
        )


@dataclass(frozen=True)
class ComparisonResult:
    """Result of one comparison run."""
    id: str
    created_at: datetime
    original_doc: DocumentContent
    modified_doc: DocumentContent
    diffs: List[DiffResult]
    stats: Stats

    def with_id(self, short_id: str) -> 'ComparisonResult':
        """Copy carrying the identifier assigned by the store."""
        return replace(self, id=short_id)

    @property
    def changes(self) -> List[DiffResult]:
        return [d for d in self.diffs if d.is_change]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'createdAt': self.created_at.isoformat(),
            'originalDoc': self.original_doc.to_dict(),
            'modifiedDoc': self.modified_doc.to_dict(),
            'diffs': [d.to_dict() for d in self.diffs],
            'stats': self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ComparisonResult':
        return cls(
            id=data['id'],
            created_at=_parse_time(data.get('createdAt')),
            original_doc=DocumentContent.from_dict(data['originalDoc']),
            modified_doc=DocumentContent.from_dict(data['modifiedDoc']),
            diffs=[DiffResult.from_dict(d) for d in data.get('diffs', [])],
            stats=Stats.from_dict(data.get('stats') or {})
        )


@dataclass(frozen=True)
class MergeAction:
    diff_id: str
    action: str
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self):
        if self.action not in MergeDecision.ALL:
            raise ValueError(f"Unknown merge action: {self.action}")

    def to_dict(self) -> dict:
        return {'diffId': self.diff_id, 'action': self.action,
                'timestamp': self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> 'MergeAction':
        return cls(diff_id=data['diffId'], action=data['action'],
                   timestamp=_parse_time(data.get('timestamp')))


@dataclass
class MergeState:
    """
    Current merge decision per diff id.

    Owned by the caller; recording a new action for a diff replaces the
    previous one.
    """
    comparison_id: str = ''
    actions: Dict[str, MergeAction] = field(default_factory=dict)

    @classmethod
    def from_actions(cls, actions, comparison_id: str = '') -> 'MergeState':
        state = cls(comparison_id=comparison_id)
        for action in actions:
            state.record(action)
        return state

    def record(self, action: MergeAction) -> None:
        self.actions[action.diff_id] = action

    def decide(self, diff_id: str, decision: str) -> MergeAction:
        action = MergeAction(diff_id=diff_id, action=decision)
        self.record(action)
        return action

    def decision(self, diff_id: str) -> str:
        action = self.actions.get(diff_id)
        return action.action if action else MergeDecision.PENDING

    def as_mapping(self) -> Dict[str, str]:
        return {diff_id: a.action for diff_id, a in self.actions.items()}

    def pending_count(self, diffs: List[DiffResult]) -> int:
        return sum(1 for d in diffs
                   if d.is_change and self.decision(d.id) == MergeDecision.PENDING)


@dataclass(frozen=True)
class RenderedChange:
    """A change found in HTML diff markup, addressed by ``change-N``."""
    id: str
    type: str
    text: str
    index: int
    old_text: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'id': self.id, 'type': self.type, 'text': self.text, 'index': self.index}
        if self.old_text is not None:
            data['oldText'] = self.old_text
        return data
