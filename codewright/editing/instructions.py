"""SEARCH/REPLACE block extraction from free-form model output.

The editor model is asked to answer with blocks of the form

    <SEARCH>
    code to find
    </SEARCH>
    <REPLACE>
    code to insert
    </REPLACE>

Commentary around the blocks is ignored. Markers that do not form a
complete pair are skipped by default; strict mode reports them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from codewright.errors import EditParseError

# Block bodies never span another marker
_BODY = r"((?:(?!</?(?:SEARCH|REPLACE)>)[\s\S])*?)"
_BLOCK_RE = re.compile(
    rf"<SEARCH>\s*{_BODY}\s*</SEARCH>\s*<REPLACE>\s*{_BODY}\s*</REPLACE>"
)
_MARKER_RE = re.compile(r"</?(?:SEARCH|REPLACE)>")

# Characters of context kept around a stray marker in diagnostics
_REGION_CONTEXT = 40


@dataclass(frozen=True)
class EditInstruction:
    """A candidate block substitution."""

    search: str
    replace: str


def extract_edit_instructions(text: str, strict: bool = False) -> list[EditInstruction]:
    """Return every well-formed SEARCH/REPLACE pair in document order.

    Both fields are stripped of surrounding whitespace; internal
    whitespace is kept. With strict=True, leftover markers raise
    EditParseError instead of being skipped.
    """
    instructions = [
        EditInstruction(search=m.group(1).strip(), replace=m.group(2).strip())
        for m in _BLOCK_RE.finditer(text)
    ]
    if strict:
        regions = find_unmatched_markers(text)
        if regions:
            raise EditParseError(regions)
    return instructions


def find_unmatched_markers(text: str) -> list[str]:
    """Return text snippets around markers that are not part of a complete pair."""
    regions: list[str] = []
    cursor = 0
    for block in _BLOCK_RE.finditer(text):
        regions.extend(_stray_markers(text, cursor, block.start()))
        cursor = block.end()
    regions.extend(_stray_markers(text, cursor, len(text)))
    return regions


def _stray_markers(text: str, start: int, end: int) -> list[str]:
    found = []
    for marker in _MARKER_RE.finditer(text, start, end):
        lo = max(start, marker.start() - _REGION_CONTEXT)
        hi = min(end, marker.end() + _REGION_CONTEXT)
        found.append(text[lo:hi].strip())
    return found
