"""Shared data models for the API layer.

Messages mirror the Anthropic Messages API: user and assistant turns whose
content is plain text, a batch of tool-use requests (assistant only) or a
batch of tool results (user only).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ToolInvocation:
    """A tool-use request from the model."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        return {"type": "tool_use", "id": self.id, "name": self.name, "input": self.input}


@dataclass(frozen=True)
class ToolResult:
    """Result of one tool invocation, correlated by tool_use_id."""

    tool_use_id: str
    content: str
    is_error: bool = False

    def to_api(self) -> dict[str, Any]:
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": self.content,
        }
        if self.is_error:
            block["is_error"] = True
        return block


# ---------------------------------------------------------------------------
# Message content variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextContent:
    text: str

    def to_api(self) -> list[dict[str, Any]]:
        return [{"type": "text", "text": self.text}]


@dataclass(frozen=True)
class ToolUseContent:
    invocations: tuple[ToolInvocation, ...]

    def to_api(self) -> list[dict[str, Any]]:
        return [inv.to_api() for inv in self.invocations]


@dataclass(frozen=True)
class ToolResultContent:
    results: tuple[ToolResult, ...]

    def to_api(self) -> list[dict[str, Any]]:
        return [r.to_api() for r in self.results]


Content = TextContent | ToolUseContent | ToolResultContent


@dataclass(frozen=True)
class Message:
    """A single message in a conversation.

    Tool-use content is only valid on assistant messages and tool-result
    content only on user messages; anything else raises ValueError.
    """

    role: Role
    content: Content

    def __post_init__(self) -> None:
        if isinstance(self.content, ToolUseContent) and self.role is not Role.ASSISTANT:
            raise ValueError("tool_use content requires role 'assistant'")
        if isinstance(self.content, ToolResultContent) and self.role is not Role.USER:
            raise ValueError("tool_result content requires role 'user'")

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(Role.USER, TextContent(text))

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(Role.ASSISTANT, TextContent(text))

    @classmethod
    def tool_use(cls, invocations: list[ToolInvocation]) -> Message:
        return cls(Role.ASSISTANT, ToolUseContent(tuple(invocations)))

    @classmethod
    def tool_results(cls, results: list[ToolResult]) -> Message:
        return cls(Role.USER, ToolResultContent(tuple(results)))

    def to_api(self) -> dict[str, Any]:
        """Serialize to the Messages API wire shape."""
        return {"role": str(self.role), "content": self.content.to_api()}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class ApiResponse:
    """Parsed response from Anthropic Messages API."""

    content: list[dict[str, Any]]  # Raw content blocks from API
    stop_reason: str  # end_turn, max_tokens, tool_use, stop_sequence
    usage: dict[str, int] | None = None

    def text(self) -> str:
        """All text blocks concatenated in order."""
        return "".join(b.get("text", "") for b in self.content if b.get("type") == "text")

    def tool_invocations(self) -> list[ToolInvocation]:
        return [
            ToolInvocation(id=b["id"], name=b["name"], input=b.get("input") or {})
            for b in self.content
            if b.get("type") == "tool_use"
        ]


@dataclass
class SessionResult:
    """Outcome of AgentRunner.chat()."""

    text: str
    completed: bool  # completion marker seen
    rounds: int  # follow-up requests made after tool execution
    tool_calls: int = 0
