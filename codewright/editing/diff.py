"""Line-level diff between two text blobs.

Pure functions, no I/O. Alignment is difflib's longest-matching-block
algorithm with the junk heuristic disabled, so results are purely
positional regardless of file size.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from enum import StrEnum


class ChangeTag(StrEnum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


_SIGNS = {
    ChangeTag.EQUAL: " ",
    ChangeTag.INSERT: "+",
    ChangeTag.DELETE: "-",
}


@dataclass(frozen=True)
class LineChange:
    """One line of a diff. `text` keeps its line ending, if any."""

    tag: ChangeTag
    text: str

    @property
    def sign(self) -> str:
        return _SIGNS[self.tag]


@dataclass(frozen=True)
class LineDiff:
    """Result of diff_lines()."""

    changes: tuple[LineChange, ...]
    ratio: float

    @property
    def added(self) -> int:
        return sum(1 for c in self.changes if c.tag is ChangeTag.INSERT)

    @property
    def removed(self) -> int:
        return sum(1 for c in self.changes if c.tag is ChangeTag.DELETE)

    @property
    def has_changes(self) -> bool:
        return self.ratio < 1.0

    def render(self) -> str:
        """Render as text, each line prefixed with '+', '-' or ' '."""
        parts = []
        for change in self.changes:
            line = change.text if change.text.endswith("\n") else change.text + "\n"
            parts.append(f"{change.sign}{line}")
        return "".join(parts)


def diff_lines(old: str, new: str) -> LineDiff:
    """Align `old` and `new` line by line and classify every line."""
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)

    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    changes: list[LineChange] = []
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            changes.extend(LineChange(ChangeTag.EQUAL, line) for line in old_lines[i1:i2])
            continue
        # "replace" is a delete followed by an insert
        if op in ("delete", "replace"):
            changes.extend(LineChange(ChangeTag.DELETE, line) for line in old_lines[i1:i2])
        if op in ("insert", "replace"):
            changes.extend(LineChange(ChangeTag.INSERT, line) for line in new_lines[j1:j2])

    ratio = 1.0 if old == new else matcher.ratio()
    return LineDiff(changes=tuple(changes), ratio=ratio)
