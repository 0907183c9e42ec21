"""Tool schema table and dispatcher for direct Anthropic API integration.

Provides:
- ToolSpec / TOOL_SPECS: the fixed set of tools the model may call,
  built once at import and never mutated
- ToolDispatcher: binds handlers to specs, validates arguments and
  dispatches calls from the API

Handlers are async callables taking the tool arguments as keyword
arguments and returning the plain-text tool result.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from codewright.errors import (
    CodewrightError,
    MissingArgumentError,
    ToolExecutionError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    """Name, description and JSON input schema of one tool."""

    name: str
    description: str
    input_schema: MappingProxyType

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(self.input_schema.get("required", ()))

    def to_api(self) -> dict[str, Any]:
        """Tool definition in Anthropic API format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": _thaw(self.input_schema),
        }


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, MappingProxyType):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _spec(name: str, description: str, properties: dict[str, Any], required: list[str]) -> ToolSpec:
    schema = {"type": "object", "properties": properties, "required": required}
    return ToolSpec(name=name, description=description, input_schema=_freeze(schema))


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


# ---------------------------------------------------------------------------
# Tool schema table
# ---------------------------------------------------------------------------

TOOL_SPECS: tuple[ToolSpec, ...] = (
    _spec(
        "create_folder",
        "Create a new folder at the specified path, including missing parents. "
        "Use this to add a directory to the project structure.",
        {"path": _string("The path where the folder should be created")},
        ["path"],
    ),
    _spec(
        "create_file",
        "Create a new file at the specified path with the given content. "
        "Missing parent folders are created.",
        {
            "path": _string("The path where the file should be created"),
            "content": _string("The content of the file"),
        },
        ["path", "content"],
    ),
    _spec(
        "edit_and_apply",
        "Change an existing file by briefing a separate code-editing model. The editor "
        "produces SEARCH/REPLACE blocks which are applied to the file; blocks that do not "
        "match are retried. Use this for modifications that need the wider project context.",
        {
            "path": _string("The path of the file to edit. Use forward slashes (/) as separators."),
            "instructions": _string(
                "What to change and why. Quote every snippet that must change along with its "
                "replacement, and name the conventions the change must follow."
            ),
            "project_context": _string(
                "Context about the project: recent changes, new names, how files relate to "
                "each other and the coding standards in use."
            ),
        },
        ["path", "instructions", "project_context"],
    ),
    _spec(
        "read_file",
        "Read the contents of the file at the specified path.",
        {"path": _string("The path of the file to read")},
        ["path"],
    ),
    _spec(
        "list_files",
        "List the files and folders in the specified directory.",
        {"path": _string("The path of the folder to list (default: current directory)")},
        [],
    ),
    _spec(
        "fetch_commit_changes",
        "Fetch the files changed by a commit in a GitHub repository, with addition and "
        "deletion counts and the patch of each file.",
        {
            "owner": _string("The owner of the repository"),
            "repo": _string("The name of the repository"),
            "sha": _string("The SHA of the commit to fetch"),
        },
        ["owner", "repo", "sha"],
    ),
)


# ---------------------------------------------------------------------------
# ToolDispatcher
# ---------------------------------------------------------------------------


class ToolDispatcher:
    """Registers tool handlers and dispatches tool calls from the API.

    Only tools named in TOOL_SPECS can be registered. Dispatch
    validates required arguments before the handler runs.
    """

    def __init__(self, specs: tuple[ToolSpec, ...] = TOOL_SPECS) -> None:
        self._specs: dict[str, ToolSpec] = {spec.name: spec for spec in specs}
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        """Bind a handler to a tool from the schema table."""
        if name not in self._specs:
            raise UnknownToolError(name)
        self._handlers[name] = handler

    @property
    def registered(self) -> list[str]:
        return list(self._handlers)

    def tool_definitions(self) -> list[dict[str, Any]]:
        """Return registered tool definitions in Anthropic API format."""
        return [self._specs[name].to_api() for name in self._handlers]

    async def dispatch(self, name: str, args: dict[str, Any]) -> str:
        """Run a tool call and return its text result.

        Raises UnknownToolError, MissingArgumentError, any CodewrightError
        raised by the handler, or ToolExecutionError wrapping anything else.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)

        for argument in self._specs[name].required:
            if argument not in args:
                raise MissingArgumentError(name, argument)

        logger.info("Dispatching tool %s", name)
        try:
            return await handler(**args)
        except CodewrightError:
            raise
        except Exception as e:
            logger.exception("Tool dispatch error for %s", name)
            raise ToolExecutionError(name, f"Tool error in {name}: {e}") from e
