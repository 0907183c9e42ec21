"""Tests for codewright/editing/editor.py -- CodeEditor edit passes.

The editor model is an AsyncMock returning controlled ApiResponses.
"""

from unittest.mock import AsyncMock

import pytest

from codewright.api.edit_tools import register_edit_tool
from codewright.api.models import ApiResponse
from codewright.api.tools import ToolDispatcher
from codewright.editing.confirm import DryRun
from codewright.editing.editor import CodeEditor
from codewright.editing.patch import PatchApplier
from codewright.errors import FileOperationError


def _reply(text: str, usage: dict | None = None) -> ApiResponse:
    return ApiResponse(
        content=[{"type": "text", "text": text}],
        stop_reason="end_turn",
        usage=usage or {"input_tokens": 100, "output_tokens": 20},
    )


def _block(search: str, replace: str) -> str:
    return f"<SEARCH>\n{search}\n</SEARCH>\n<REPLACE>\n{replace}\n</REPLACE>\n"


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "app.py"
    path.write_text("def main():\n    print('hi')\n", encoding="utf-8")
    return path


class TestEditAndApply:
    @pytest.mark.asyncio
    async def test_single_pass_success(self, settings, source):
        client = AsyncMock()
        client.send.return_value = _reply(_block("def main():\n    print('hi')", "def main():\n    print('hello')"))
        editor = CodeEditor(client, settings)

        summary = await editor.edit_and_apply(source, "greet properly", "tiny app")

        assert summary.startswith(f"Changes applied to {source}")
        assert "+1 -1" in summary
        assert source.read_text() == "def main():\n    print('hello')\n"
        assert client.send.await_count == 1
        assert editor.usage == {"input": 100, "output": 20}
        assert str(source) in editor.edited_files
        assert editor.memory[0].startswith(f"Edit Instructions for {source}:")

    @pytest.mark.asyncio
    async def test_editor_prompt_contents(self, settings, source):
        client = AsyncMock()
        client.send.return_value = _reply("")
        editor = CodeEditor(client, settings)

        await editor.edit_and_apply(source, "do the thing", "ctx here")

        kwargs = client.send.call_args.kwargs
        assert "def main():" in kwargs["system_prompt"]
        assert "do the thing" in kwargs["system_prompt"]
        assert "ctx here" in kwargs["system_prompt"]
        assert kwargs["model"] == settings.editor_model
        assert "tools" not in kwargs

    @pytest.mark.asyncio
    async def test_failed_edits_retried_with_report(self, settings, source):
        client = AsyncMock()
        client.send.side_effect = [
            _reply(_block("def main():", "def run():") + _block("nonexistent()", "x()")),
            _reply(_block("def run():\n    print('hi')", "def run():\n    print('bye')")),
        ]
        editor = CodeEditor(client, settings)

        summary = await editor.edit_and_apply(source, "rename and change", "ctx")

        assert client.send.await_count == 2
        retry_prompt = client.send.call_args_list[1].kwargs["system_prompt"]
        assert "Please retry the following edits that could not be applied:" in retry_prompt
        assert "Edit 2: nonexistent()" in retry_prompt
        assert source.read_text() == "def run():\n    print('bye')\n"
        assert "Pass 1" in summary and "Pass 2" in summary
        assert "could not be applied" not in summary

    @pytest.mark.asyncio
    async def test_pass_bound(self, settings, source):
        client = AsyncMock()
        client.send.return_value = _reply(_block("missing", "x"))
        editor = CodeEditor(client, settings)

        summary = await editor.edit_and_apply(source, "change", "ctx")

        assert client.send.await_count == settings.max_edit_passes
        assert summary.startswith(f"No changes could be applied to {source} after 2 attempts")
        assert source.read_text() == "def main():\n    print('hi')\n"

    @pytest.mark.asyncio
    async def test_unresolved_edits_reported(self, settings, source):
        settings.max_edit_passes = 1
        client = AsyncMock()
        client.send.return_value = _reply(
            _block("def main():", "def run():") + _block("missing", "x")
        )
        editor = CodeEditor(client, settings)

        summary = await editor.edit_and_apply(source, "change", "ctx")

        assert summary.startswith(f"Changes applied to {source}")
        assert "Edit 2: missing" in summary

    @pytest.mark.asyncio
    async def test_failures_kept_when_retry_returns_no_blocks(self, settings, source):
        client = AsyncMock()
        client.send.side_effect = [
            _reply(_block("def main():", "def run():") + _block("nope()", "x()")),
            _reply("No further changes are needed."),
        ]
        editor = CodeEditor(client, settings)

        summary = await editor.edit_and_apply(source, "rename", "ctx")

        assert client.send.await_count == 2
        assert summary.startswith(f"Changes applied to {source}\nPass 1: +1 -1 lines")
        assert summary.endswith("Edits that could not be applied:\nEdit 2: nope()")

    @pytest.mark.asyncio
    async def test_memory_and_other_files_in_later_prompts(self, settings, tmp_path, source):
        other = tmp_path / "util.py"
        other.write_text("X = 1\n", encoding="utf-8")
        client = AsyncMock()
        client.send.side_effect = [
            _reply(_block("X = 1", "X = 2")),
            _reply(_block("def main():\n    print('hi')", "def main():\n    print(X)")),
        ]
        editor = CodeEditor(client, settings)

        await editor.edit_and_apply(other, "bump", "ctx")
        await editor.edit_and_apply(source, "use X", "ctx")

        second_prompt = client.send.call_args_list[1].kwargs["system_prompt"]
        assert "Memory 1:" in second_prompt
        assert f"--- {other} ---\nX = 2" in second_prompt

    @pytest.mark.asyncio
    async def test_dry_run_policy(self, settings, source):
        client = AsyncMock()
        client.send.return_value = _reply(_block("def main():\n    print('hi')", "def main():\n    print('x')"))
        editor = CodeEditor(client, settings, PatchApplier(DryRun()))

        summary = await editor.edit_and_apply(source, "change", "ctx")

        assert summary.startswith(f"Changes previewed for {source}")
        assert "Pass 1: +1 -1 lines" in summary
        assert source.read_text() == "def main():\n    print('hi')\n"

    @pytest.mark.asyncio
    async def test_missing_file(self, settings, tmp_path):
        editor = CodeEditor(AsyncMock(), settings)
        with pytest.raises(FileOperationError):
            await editor.edit_and_apply(tmp_path / "absent.py", "x", "y")


class TestEditTool:
    @pytest.mark.asyncio
    async def test_edit_tool_resolves_in_workspace(self, settings, source):
        client = AsyncMock()
        client.send.return_value = _reply(_block("def main():\n    print('hi')", "def main():\n    pass"))
        dispatcher = ToolDispatcher()
        register_edit_tool(dispatcher, settings, CodeEditor(client, settings))

        result = await dispatcher.dispatch(
            "edit_and_apply",
            {"path": "app.py", "instructions": "noop body", "project_context": "ctx"},
        )

        assert result.startswith("Changes applied to")
        assert source.read_text() == "def main():\n    pass\n"

    @pytest.mark.asyncio
    async def test_edit_tool_rejects_escape(self, settings):
        dispatcher = ToolDispatcher()
        register_edit_tool(dispatcher, settings, CodeEditor(AsyncMock(), settings))
        with pytest.raises(FileOperationError):
            await dispatcher.dispatch(
                "edit_and_apply",
                {"path": "../x.py", "instructions": "i", "project_context": "c"},
            )
