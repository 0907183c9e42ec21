"""Code editor: asks the editor model for SEARCH/REPLACE blocks and applies them.

Each pass sends the file, the caller's instructions, project context, the
memory of earlier edit instructions and the other files seen so far.
Edits that fail to match are fed back into the next pass, up to
Settings.max_edit_passes passes in total.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from codewright.api.models import ApiResponse
from codewright.config import Settings
from codewright.editing.instructions import (
    EditInstruction,
    extract_edit_instructions,
    find_unmatched_markers,
)
from codewright.editing.patch import PatchApplier, PatchStatus
from codewright.errors import FileOperationError
from codewright.prompts import EDITOR_SYSTEM_PROMPT, EDITOR_USER_MESSAGE, RETRY_INSTRUCTIONS

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    """The subset of AnthropicClient the editor needs."""

    async def send(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> ApiResponse: ...


class CodeEditor:
    """Generates and applies edit instructions for one file at a time.

    State kept across calls:
    - memory: raw edit instructions returned by the editor model, per file
    - edited_files: paths that have gone through edit_and_apply
    - file_cache: last known content of every file seen
    - usage: editor-model token totals ("input" / "output")
    """

    def __init__(
        self,
        client: MessageSender,
        settings: Settings,
        applier: PatchApplier | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._applier = applier or PatchApplier()
        self.memory: list[str] = []
        self.edited_files: set[str] = set()
        self.file_cache: dict[str, str] = {}
        self.usage: dict[str, int] = {"input": 0, "output": 0}

    async def edit_and_apply(self, path: str | Path, instructions: str, project_context: str) -> str:
        """Edit `path` according to `instructions` and return a summary for the model."""
        target = Path(path)
        key = str(target)
        max_passes = self._settings.max_edit_passes

        content = _read(target)
        self.file_cache[key] = content

        current_instructions = instructions
        pass_summaries: list[str] = []
        unresolved = ""
        written = False

        for attempt in range(1, max_passes + 1):
            edits = await self.generate_edit_instructions(
                key, content, current_instructions, project_context
            )
            logger.info(
                "Pass %d/%d: %d SEARCH/REPLACE block(s) generated for %s",
                attempt, max_passes, len(edits), key,
            )
            if not edits:
                break

            report = self._applier.apply(target, edits, content=content)
            content = report.content
            self.file_cache[key] = content
            unresolved = report.failed_report
            written = written or any(r.status is PatchStatus.APPLIED for r in report.results)

            if report.changes_made:
                pass_summaries.append(
                    f"Pass {attempt}: +{report.added_lines} -{report.removed_lines} lines"
                )

            if not unresolved:
                break
            if attempt < max_passes:
                logger.info("Some edits could not be applied to %s, retrying", key)
                current_instructions = f"{instructions}\n\n{RETRY_INSTRUCTIONS}\n{unresolved}"

        if not pass_summaries:
            return (
                f"No changes could be applied to {key} after {max_passes} attempts. "
                "Please review the edit instructions and try again."
            )

        heading = f"Changes applied to {key}" if written else f"Changes previewed for {key}"
        summary = heading + "\n" + "\n".join(pass_summaries)
        if unresolved:
            summary += "\nEdits that could not be applied:\n" + unresolved
        return summary

    async def generate_edit_instructions(
        self,
        path: str,
        file_content: str,
        instructions: str,
        project_context: str,
    ) -> list[EditInstruction]:
        """One editor-model round trip, parsed into EditInstructions."""
        system_prompt = EDITOR_SYSTEM_PROMPT.format(
            path=path,
            file_content=file_content,
            instructions=instructions,
            project_context=project_context,
            memory=self._memory_context(),
            other_files=self._other_files_context(path),
        )
        response = await self._client.send(
            system_prompt=system_prompt,
            messages=[{"role": "user", "content": EDITOR_USER_MESSAGE}],
            model=self._settings.editor_model,
        )
        self._record_usage(response.usage)

        text = response.text()
        logger.debug("Editor response for %s: %s", path, text)

        unmatched = find_unmatched_markers(text)
        if unmatched:
            logger.warning(
                "Editor response for %s has %d malformed SEARCH/REPLACE region(s): %s",
                path, len(unmatched), " | ".join(unmatched),
            )
        edits = extract_edit_instructions(text, strict=self._settings.strict_edit_parsing)

        self.memory.append(f"Edit Instructions for {path}:\n{text}")
        self.edited_files.add(path)
        return edits

    def _memory_context(self) -> str:
        if not self.memory:
            return "(none)"
        return "\n".join(f"Memory {i}:\n{entry}" for i, entry in enumerate(self.memory, start=1))

    def _other_files_context(self, path: str) -> str:
        others = [
            f"--- {name} ---\n{content}"
            for name, content in self.file_cache.items()
            if name != path
        ]
        return "\n\n".join(others) if others else "(none)"

    def _record_usage(self, usage: dict[str, int] | None) -> None:
        if not usage:
            return
        self.usage["input"] += int(usage.get("input_tokens", 0) or 0)
        self.usage["output"] += int(usage.get("output_tokens", 0) or 0)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(str(path), f"Error reading file {path}: {e}") from e
