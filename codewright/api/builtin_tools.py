"""Built-in file tools: create_folder, create_file, read_file, list_files.

Every path is resolved against the workspace directory and may not
escape it. Filesystem failures raise FileOperationError so the agent
loop can report which tool broke.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from codewright.api.tools import ToolDispatcher
from codewright.config import Settings
from codewright.errors import FileOperationError

logger = logging.getLogger(__name__)


def _validate_path(path_str: str, workspace_dir: str) -> Path:
    """Validate that a path is under workspace_dir.

    Raises FileOperationError if path escapes workspace.
    """
    workspace = Path(workspace_dir).resolve()
    target = (workspace / path_str).resolve() if not Path(path_str).is_absolute() else Path(path_str).resolve()

    if not target.is_relative_to(workspace):
        raise FileOperationError(
            path_str,
            f"Path '{path_str}' is outside workspace '{workspace_dir}'. "
            "Only paths within the workspace directory are allowed.",
        )
    return target


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


async def create_folder_tool(path: str, *, _workspace_dir: str = ".") -> str:
    target = _validate_path(path, _workspace_dir)
    try:
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
    except OSError as e:
        raise FileOperationError(path, f"Error creating folder {path}: {e}") from e
    logger.info("Folder created: %s", target)
    return f"Folder created: {path}"


async def create_file_tool(path: str, content: str = "", *, _workspace_dir: str = ".") -> str:
    """Write `content` to `path`, creating parent directories as needed."""
    target = _validate_path(path, _workspace_dir)
    try:
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_text, content, encoding="utf-8")
    except OSError as e:
        raise FileOperationError(path, f"Error creating file {path}: {e}") from e
    logger.info("File created: %s (%d chars)", target, len(content))
    return f"File created: {path}"


async def read_file_tool(path: str, *, _workspace_dir: str = ".") -> str:
    target = _validate_path(path, _workspace_dir)
    try:
        return await asyncio.to_thread(target.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(path, f"Error reading file {path}: {e}") from e


async def list_files_tool(path: str = ".", *, _workspace_dir: str = ".") -> str:
    """Entry names of a directory, sorted, one per line."""
    target = _validate_path(path, _workspace_dir)
    try:
        names = await asyncio.to_thread(lambda: sorted(entry.name for entry in target.iterdir()))
    except OSError as e:
        raise FileOperationError(path, f"Error listing files in {path}: {e}") from e
    logger.info("Listed %d files in directory %s", len(names), target)
    return "\n".join(names)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_builtin_tools(dispatcher: ToolDispatcher, settings: Settings) -> None:
    """Register the file tools with the dispatcher.

    Creates closure wrappers that inject workspace_dir from settings.
    """
    workspace = settings.workspace_dir

    async def _create_folder(path: str) -> str:
        return await create_folder_tool(path, _workspace_dir=workspace)

    async def _create_file(path: str, content: str = "") -> str:
        return await create_file_tool(path, content, _workspace_dir=workspace)

    async def _read_file(path: str) -> str:
        return await read_file_tool(path, _workspace_dir=workspace)

    async def _list_files(path: str = ".") -> str:
        return await list_files_tool(path, _workspace_dir=workspace)

    dispatcher.register("create_folder", _create_folder)
    dispatcher.register("create_file", _create_file)
    dispatcher.register("read_file", _read_file)
    dispatcher.register("list_files", _list_files)
