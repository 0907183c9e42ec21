"""Editing package: SEARCH/REPLACE extraction, line diffs and the patch applier.

Public API: PatchApplier + CodeEditor and the types they produce.
"""

from codewright.editing.confirm import (
    AutoAccept,
    ConfirmationPolicy,
    DryRun,
    InteractiveConfirm,
    PatchDecision,
    build_confirmation_policy,
)
from codewright.editing.diff import ChangeTag, LineChange, LineDiff, diff_lines
from codewright.editing.editor import CodeEditor
from codewright.editing.instructions import (
    EditInstruction,
    extract_edit_instructions,
    find_unmatched_markers,
)
from codewright.editing.patch import PatchApplier, PatchReport, PatchResult, PatchStatus

__all__ = [
    "CodeEditor",
    "PatchApplier",
    # Results
    "PatchReport",
    "PatchResult",
    "PatchStatus",
    # Instructions
    "EditInstruction",
    "extract_edit_instructions",
    "find_unmatched_markers",
    # Diff
    "ChangeTag",
    "LineChange",
    "LineDiff",
    "diff_lines",
    # Confirmation policies
    "AutoAccept",
    "ConfirmationPolicy",
    "DryRun",
    "InteractiveConfirm",
    "PatchDecision",
    "build_confirmation_policy",
]
