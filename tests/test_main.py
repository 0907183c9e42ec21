"""Tests for codewright/main.py -- prompt collection and the continuation loop.

The editor subprocess, the prompt dialog and the runner are mocked.
"""

import subprocess
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from codewright.api.models import SessionResult
from codewright.main import collect_prompt, create_components, run_sessions


def _console() -> Console:
    return Console(record=True, width=100)


def _components(results: list[SessionResult]) -> dict:
    runner = MagicMock()
    runner.start = AsyncMock()
    runner.close = AsyncMock()
    runner.chat = AsyncMock(side_effect=results)
    runner.save_chat = MagicMock(return_value="Chat_0000.md")
    client = MagicMock()
    client.usage = {"input_tokens": 0, "output_tokens": 0}
    editor = MagicMock()
    editor.usage = {"input": 0, "output": 0}
    github_http = MagicMock()
    github_http.aclose = AsyncMock()
    return {"runner": runner, "client": client, "editor": editor, "github_http": github_http}


class TestCollectPrompt:
    def test_editor_output_read(self, settings, tmp_path):
        def fake_editor(command, check):
            (tmp_path / "prompt.txt").write_text("  write a parser \n")

        with patch("codewright.main.subprocess.run", side_effect=fake_editor) as run:
            prompt = collect_prompt(settings, _console())

        assert prompt == "write a parser"
        assert run.call_args.args[0] == ["vim", str(tmp_path / "prompt.txt")]

    def test_editor_unavailable_falls_back_to_file(self, settings, tmp_path):
        (tmp_path / "prompt.txt").write_text("existing prompt")
        with patch("codewright.main.subprocess.run", side_effect=FileNotFoundError("vim")):
            assert collect_prompt(settings, _console()) == "existing prompt"

    def test_editor_failure_exit_code(self, settings, tmp_path):
        error = subprocess.CalledProcessError(1, "vim")
        with patch("codewright.main.subprocess.run", side_effect=error):
            assert collect_prompt(settings, _console()) == ""


class TestRunSessions:
    @pytest.mark.asyncio
    async def test_stops_on_completion(self, settings, tmp_path):
        components = _components([SessionResult("done AUTOMODE_COMPLETE", completed=True, rounds=0)])
        (tmp_path / "prompt.txt").write_text("task")

        with (
            patch("codewright.main.create_components", return_value=components),
            patch("codewright.main.collect_prompt", return_value="task"),
            patch("codewright.main.Prompt.ask") as ask,
        ):
            await run_sessions(settings, _console())

        runner = components["runner"]
        runner.chat.assert_awaited_once_with("task")
        runner.commit.assert_called_once()
        runner.save_chat.assert_called_once()
        runner.close.assert_awaited_once()
        ask.assert_not_called()
        assert not (tmp_path / "prompt.txt").exists()

    @pytest.mark.asyncio
    async def test_continue_new_and_exit(self, settings):
        components = _components([
            SessionResult("first", completed=False, rounds=0),
            SessionResult("second", completed=False, rounds=0),
            SessionResult("third", completed=False, rounds=0),
        ])

        with (
            patch("codewright.main.create_components", return_value=components),
            patch("codewright.main.collect_prompt", side_effect=["task", "new task"]),
            patch("codewright.main.Prompt.ask", side_effect=["c", "n", "e"]),
        ):
            await run_sessions(settings, _console())

        prompts = [c.args[0] for c in components["runner"].chat.await_args_list]
        assert prompts == ["task", "task", "new task"]

    @pytest.mark.asyncio
    async def test_iteration_bound(self, settings):
        settings.max_continuation_iterations = 2
        components = _components([SessionResult("x", completed=False, rounds=0)] * 2)

        with (
            patch("codewright.main.create_components", return_value=components),
            patch("codewright.main.collect_prompt", return_value="task"),
            patch("codewright.main.Prompt.ask", return_value="c"),
        ):
            await run_sessions(settings, _console())

        assert components["runner"].chat.await_count == 2


class TestCreateComponents:
    def test_all_tools_registered(self, settings):
        components = create_components(settings, _console())
        assert sorted(components["dispatcher"].registered) == [
            "create_file",
            "create_folder",
            "edit_and_apply",
            "fetch_commit_changes",
            "list_files",
            "read_file",
        ]
