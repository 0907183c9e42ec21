"""Search/replace patch applier.

Locates each SEARCH block in a file by whitespace-normalized line
matching, splices in the REPLACE block verbatim and reports per-edit
results. Edits run strictly in order; each one sees the content left
by every earlier successful edit of the same call.

Unmatched blocks are soft failures collected into a report the caller
can hand back to the model. Filesystem failures abort the whole call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from codewright.editing.confirm import AutoAccept, ConfirmationPolicy, PatchDecision
from codewright.editing.diff import diff_lines
from codewright.editing.instructions import EditInstruction
from codewright.errors import FileOperationError

logger = logging.getLogger(__name__)


class PatchStatus(StrEnum):
    APPLIED = "applied"
    PREVIEWED = "previewed"
    DECLINED = "declined"
    NO_MATCH = "no_match"
    EMPTY_SEARCH = "empty_search"


@dataclass(frozen=True)
class PatchResult:
    """Outcome of one edit instruction."""

    index: int  # 0-based position in the batch
    search: str
    status: PatchStatus
    added_lines: int = 0
    removed_lines: int = 0

    @property
    def applied(self) -> bool:
        return self.status in (PatchStatus.APPLIED, PatchStatus.PREVIEWED)

    @property
    def failed(self) -> bool:
        return self.status in (PatchStatus.NO_MATCH, PatchStatus.EMPTY_SEARCH)


@dataclass
class PatchReport:
    """Aggregate outcome of PatchApplier.apply()."""

    path: str
    content: str
    results: list[PatchResult] = field(default_factory=list)

    @property
    def changes_made(self) -> bool:
        return any(r.applied for r in self.results)

    @property
    def failed_edits(self) -> list[str]:
        return [f"Edit {r.index + 1}: {r.search}" for r in self.results if r.failed]

    @property
    def failed_report(self) -> str:
        return "\n".join(self.failed_edits)

    @property
    def added_lines(self) -> int:
        return sum(r.added_lines for r in self.results)

    @property
    def removed_lines(self) -> int:
        return sum(r.removed_lines for r in self.results)


def normalize_whitespace(line: str) -> str:
    """Trim and fold internal whitespace runs to single spaces."""
    return " ".join(line.split())


def split_lines(text: str) -> list[str]:
    """Split on newlines without producing a phantom trailing empty line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def find_block(lines: list[str], search_lines: list[str]) -> int | None:
    """Return the first index where normalized search_lines match, else None."""
    if not search_lines:
        return None
    wanted = [normalize_whitespace(line) for line in search_lines]
    normalized = [normalize_whitespace(line) for line in lines]
    span = len(wanted)
    for start in range(len(normalized) - span + 1):
        if normalized[start:start + span] == wanted:
            return start
    return None


class PatchApplier:
    """Applies ordered EditInstructions to files on disk.

    The confirmation policy decides per edit whether it is written,
    kept in memory only (dry run) or dropped.
    """

    def __init__(self, policy: ConfirmationPolicy | None = None) -> None:
        self._policy: ConfirmationPolicy = policy or AutoAccept()

    def apply(
        self,
        path: str | Path,
        instructions: list[EditInstruction],
        content: str | None = None,
    ) -> PatchReport:
        """Apply instructions in order and return the report.

        If `content` is None the file is read first. Raises
        FileOperationError if the file cannot be read or written.
        """
        target = Path(path)
        current = _read(target) if content is None else content
        report = PatchReport(path=str(target), content=current)
        total = len(instructions)

        for index, edit in enumerate(instructions):
            search_lines = split_lines(edit.search)
            if not search_lines:
                logger.warning("Edit %d/%d for %s has an empty search block", index + 1, total, target)
                report.results.append(PatchResult(index, edit.search, PatchStatus.EMPTY_SEARCH))
                continue

            lines = split_lines(current)
            start = find_block(lines, search_lines)
            if start is None:
                logger.info("Edit %d/%d not applied to %s: content not found", index + 1, total, target)
                report.results.append(PatchResult(index, edit.search, PatchStatus.NO_MATCH))
                continue

            end = start + len(search_lines)
            edited_lines = lines[:start] + split_lines(edit.replace) + lines[end:]
            candidate = "\n".join(edited_lines)
            if edited_lines and current.endswith("\n"):
                candidate += "\n"

            diff = diff_lines(current, candidate)
            decision = self._policy(str(target), diff)

            if decision is PatchDecision.SKIP:
                report.results.append(PatchResult(index, edit.search, PatchStatus.DECLINED))
                continue

            if decision is PatchDecision.APPLY:
                _write(target, candidate)
                # Re-read so the next edit sees exactly what landed on disk
                current = _read(target)
                status = PatchStatus.APPLIED
            else:
                current = candidate
                status = PatchStatus.PREVIEWED

            logger.info(
                "Changes applied in %s (%d/%d): +%d -%d",
                target, index + 1, total, diff.added, diff.removed,
            )
            report.results.append(PatchResult(
                index,
                edit.search,
                status,
                added_lines=diff.added,
                removed_lines=diff.removed,
            ))

        report.content = current
        if not report.changes_made:
            logger.info("No changes were applied to %s", target)
        return report


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(str(path), f"Error reading file {path}: {e}") from e


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileOperationError(str(path), f"Error writing file {path}: {e}") from e
