"""Exception hierarchy for codewright.

Tool-level failures carry the tool name, session-level failures carry
the phase that failed, so the CLI can report which operation broke.
"""

from __future__ import annotations


class CodewrightError(Exception):
    """Base class for all codewright errors."""


# ---------------------------------------------------------------------------
# Tool errors
# ---------------------------------------------------------------------------


class ToolError(CodewrightError):
    """A tool call could not be executed."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class UnknownToolError(ToolError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Unknown tool: {tool_name}")


class MissingArgumentError(ToolError):
    def __init__(self, tool_name: str, argument: str) -> None:
        self.argument = argument
        super().__init__(tool_name, f"Missing {argument} for tool {tool_name}")


class ToolExecutionError(ToolError):
    """Unexpected failure inside a tool handler."""


class CommitFetchError(ToolError):
    """The source-control API refused or failed a commit lookup."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__("fetch_commit_changes", message)


# ---------------------------------------------------------------------------
# File and edit errors
# ---------------------------------------------------------------------------


class FileOperationError(CodewrightError):
    """A filesystem read/write/create failed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class EditParseError(CodewrightError):
    """Edit instructions contained markers that do not form a SEARCH/REPLACE pair."""

    def __init__(self, regions: list[str]) -> None:
        self.regions = regions
        listing = "\n---\n".join(regions)
        super().__init__(f"{len(regions)} malformed SEARCH/REPLACE region(s):\n{listing}")


# ---------------------------------------------------------------------------
# Remote API errors
# ---------------------------------------------------------------------------


class RemoteError(CodewrightError):
    """The chat-completion API call failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(message)


class RateLimitedError(RemoteError):
    """Transient rate-limit rejection; safe to retry the same request."""

    def __init__(self, message: str, retry_after: float | None = None, **kwargs) -> None:
        self.retry_after = retry_after
        super().__init__(message, **kwargs)


class ResponseParseError(RemoteError):
    """Response body could not be decoded into an ApiResponse."""


# ---------------------------------------------------------------------------
# Session errors
# ---------------------------------------------------------------------------


class SessionError(CodewrightError):
    """Fatal agent-session failure. `phase` names the step that failed."""

    def __init__(self, phase: str, message: str) -> None:
        self.phase = phase
        super().__init__(f"{phase}: {message}")
