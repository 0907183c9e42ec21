"""edit_and_apply tool: routes edit requests to the CodeEditor."""

from __future__ import annotations

from codewright.api.builtin_tools import _validate_path
from codewright.api.tools import ToolDispatcher
from codewright.config import Settings
from codewright.editing.editor import CodeEditor


def register_edit_tool(dispatcher: ToolDispatcher, settings: Settings, editor: CodeEditor) -> None:
    """Register edit_and_apply, sandboxed to the workspace like the file tools."""
    workspace = settings.workspace_dir

    async def _edit_and_apply(path: str, instructions: str, project_context: str) -> str:
        target = _validate_path(path, workspace)
        return await editor.edit_and_apply(target, instructions, project_context)

    dispatcher.register("edit_and_apply", _edit_and_apply)
