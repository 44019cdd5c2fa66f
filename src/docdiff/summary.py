"""
Natural-language change summaries.

The text itself comes from an external text-generation service. This module
only builds the prompt from a diff and parses the service's reply; the
service is passed in as a ``generate(prompt) -> str`` callable and any error
it raises reaches the caller unchanged.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List

from .models import ChangeType, DiffResult

logger = logging.getLogger(__name__)

SUMMARY_CHANGE_LIMIT = 10
IMPACT_LEVELS = ('minor', 'moderate', 'major')
DEFAULT_IMPACT = 'moderate'
FALLBACK_SUMMARY = 'Changes detected between documents.'

_JSON_OBJECT = re.compile(r'\{.*\}', re.DOTALL)


@dataclass
class ChangeSummary:
    summary: str
    key_changes: List[str] = field(default_factory=list)
    impact_level: str = DEFAULT_IMPACT

    def to_dict(self) -> dict:
        return {'summary': self.summary, 'keyChanges': list(self.key_changes),
                'impactLevel': self.impact_level}


def build_changes_context(diffs: Iterable[DiffResult], limit: int = SUMMARY_CHANGE_LIMIT) -> str:
    changes = [d for d in diffs if d.is_change]
    if not changes:
        return 'No changes detected between the documents.'

    additions = [d for d in changes if d.type == ChangeType.ADDED]
    deletions = [d for d in changes if d.type == ChangeType.REMOVED]
    modifications = [d for d in changes if d.type == ChangeType.MODIFIED]

    lines = [f'Total changes: {len(changes)}', '']

    if additions:
        lines.append(f'ADDITIONS ({len(additions)}):')
        for i, d in enumerate(additions[:limit], 1):
            lines.append(f'{i}. "{d.modified.text[:200]}"')
        lines.append('')

    if deletions:
        lines.append(f'DELETIONS ({len(deletions)}):')
        for i, d in enumerate(deletions[:limit], 1):
            lines.append(f'{i}. "{d.original.text[:200]}"')
        lines.append('')

    if modifications:
        lines.append(f'MODIFICATIONS ({len(modifications)}):')
        for i, d in enumerate(modifications[:limit], 1):
            lines.append(f'{i}. FROM: "{d.original.text[:100]}" TO: "{d.modified.text[:100]}"')

    return '\n'.join(lines).rstrip() + '\n'


def build_prompt(diffs: Iterable[DiffResult], original_name: str, modified_name: str) -> str:
    return f"""You are a document comparison expert. Analyze the following changes between two documents and provide a structured summary.

Document comparison: "{original_name}" -> "{modified_name}"

{build_changes_context(diffs)}
Please provide your response in the following JSON format:
{{
  "summary": "A concise 2-3 sentence summary of what changed overall",
  "keyChanges": ["Key change 1", "Key change 2", "Key change 3"],
  "impactLevel": "minor|moderate|major"
}}

Guidelines:
- "minor": Small formatting or typo fixes
- "moderate": Content updates that don't change meaning significantly
- "major": Significant changes to meaning, terms, or structure
"""


def parse_summary_response(text: str) -> ChangeSummary:
    """Read the JSON object out of a model reply, with a generic fallback."""
    match = _JSON_OBJECT.search(text or '')
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse summary response: %s", e)
        else:
            if isinstance(parsed, dict):
                key_changes = parsed.get('keyChanges')
                impact = parsed.get('impactLevel')
                return ChangeSummary(
                    summary=parsed.get('summary') or 'No summary available',
                    key_changes=[str(c) for c in key_changes] if isinstance(key_changes, list) else [],
                    impact_level=impact if impact in IMPACT_LEVELS else DEFAULT_IMPACT
                )

    return ChangeSummary(summary=FALLBACK_SUMMARY)


def summarize(diffs: List[DiffResult], original_name: str, modified_name: str,
              generate: Callable[[str], str]) -> ChangeSummary:
    prompt = build_prompt(diffs, original_name, modified_name)
    logger.debug("Requesting summary, prompt length %d", len(prompt))
    return parse_summary_response(generate(prompt))
