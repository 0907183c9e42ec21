"""Conversation store: bounded committed history plus an uncommitted buffer.

History evicts oldest-first once it reaches capacity. The current buffer
holds the in-flight session and is never evicted; it only reaches history
through commit_current_to_history().
"""

from __future__ import annotations

import json
import logging
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any

from codewright.api.models import (
    Message,
    Role,
    TextContent,
    ToolResultContent,
    ToolUseContent,
)

logger = logging.getLogger(__name__)


class ConversationStore:
    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._history: deque[Message] = deque(maxlen=capacity)
        self._current: list[Message] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def history(self) -> list[Message]:
        return list(self._history)

    @property
    def current(self) -> list[Message]:
        return list(self._current)

    def add_to_current(self, message: Message) -> None:
        self._current.append(message)

    def add_to_history(self, message: Message) -> None:
        if len(self._history) == self._capacity:
            logger.debug("History at capacity (%d), evicting oldest message", self._capacity)
        # deque(maxlen=...) drops from the left on overflow
        self._history.append(message)

    def clear_current(self) -> None:
        self._current.clear()

    def commit_current_to_history(self) -> None:
        for message in self._current:
            self.add_to_history(message)
        self._current.clear()

    def combined_view(self) -> list[Message]:
        return [*self._history, *self._current]

    def to_api(self) -> list[dict[str, Any]]:
        return [m.to_api() for m in self.combined_view()]

    # ------------------------------------------------------------------
    # Transcript export
    # ------------------------------------------------------------------

    def export_markdown(self) -> str:
        """Render the combined view as a Markdown chat log."""
        parts = ["# Chat Log\n"]
        for message in self.combined_view():
            heading = "## User" if message.role is Role.USER else "## Assistant"
            parts.append(f"{heading}\n")
            content = message.content
            if isinstance(content, TextContent):
                parts.append(f"{content.text}\n")
            elif isinstance(content, ToolUseContent):
                for inv in content.invocations:
                    payload = json.dumps({"name": inv.name, "input": inv.input}, indent=2)
                    parts.append(f"### Tool Use: {inv.name}\n\n```json\n{payload}\n```\n")
            elif isinstance(content, ToolResultContent):
                for result in content.results:
                    label = "Tool Error" if result.is_error else "Tool Result"
                    parts.append(f"### {label}\n\n```\n{result.content}\n```\n")
        return "\n".join(parts)

    def save_chat(self, directory: str | Path = ".") -> Path:
        """Write the transcript to Chat_<HHMM>.md in `directory`; return its path."""
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"Chat_{datetime.now().strftime('%H%M')}.md"
        path.write_text(self.export_markdown(), encoding="utf-8")
        logger.info("Chat log saved to %s", path)
        return path
