"""Confirmation policies for the patch applier.

A policy sees each candidate edit (path + diff) before it is persisted
and decides whether to write it, keep it in memory only, or drop it.
Console rendering uses rich so diffs are highlighted in the terminal.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Protocol

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.syntax import Syntax

from codewright.config import Settings
from codewright.editing.diff import LineDiff

logger = logging.getLogger(__name__)


class PatchDecision(StrEnum):
    APPLY = "apply"  # write to disk
    PREVIEW = "preview"  # keep in memory only (dry run)
    SKIP = "skip"  # discard this edit


class ConfirmationPolicy(Protocol):
    def __call__(self, path: str, diff: LineDiff) -> PatchDecision: ...


def render_diff(path: str, diff: LineDiff) -> Panel:
    """Build a highlighted panel for a diff."""
    body = Syntax(diff.render(), "diff", theme="monokai", word_wrap=True)
    title = f"Changes in {path} (+{diff.added} -{diff.removed})"
    return Panel(body, title=title)


class AutoAccept:
    """Apply every edit. Optionally echoes diffs to a console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console

    def __call__(self, path: str, diff: LineDiff) -> PatchDecision:
        if self._console is not None:
            self._console.print(render_diff(path, diff))
        return PatchDecision.APPLY


class DryRun:
    """Never touch the disk; edits still chain in memory."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console
        self.previewed: list[tuple[str, LineDiff]] = []

    def __call__(self, path: str, diff: LineDiff) -> PatchDecision:
        self.previewed.append((path, diff))
        if self._console is not None:
            self._console.print(render_diff(path, diff))
        return PatchDecision.PREVIEW


class InteractiveConfirm:
    """Show each diff and ask the user before writing it."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def __call__(self, path: str, diff: LineDiff) -> PatchDecision:
        self._console.print(render_diff(path, diff))
        if Confirm.ask("Do you want to apply these changes?", console=self._console):
            return PatchDecision.APPLY
        logger.info("User declined edit to %s", path)
        return PatchDecision.SKIP


def build_confirmation_policy(
    settings: Settings,
    console: Console | None = None,
) -> ConfirmationPolicy:
    """Pick the policy named by settings.confirm_edits."""
    mode = settings.confirm_edits
    if mode == "interactive":
        return InteractiveConfirm(console)
    if mode == "dry_run":
        return DryRun(console)
    return AutoAccept(console)
