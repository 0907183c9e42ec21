"""codewright entry point.

Initializes all components and runs the interactive session loop:
  Settings -> AnthropicClient -> ToolDispatcher (+ tools) -> CodeEditor -> AgentRunner

The prompt is written in an external editor (prompt.txt). After each
session the user chooses to continue with the same prompt, write a new
one or exit; the loop also ends when the model emits the completion marker.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import subprocess
from pathlib import Path

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Prompt

from codewright.api.builtin_tools import register_builtin_tools
from codewright.api.client import AnthropicClient
from codewright.api.edit_tools import register_edit_tool
from codewright.api.github_tools import register_github_tools
from codewright.api.runner import AgentRunner
from codewright.api.tools import ToolDispatcher
from codewright.config import Settings
from codewright.editing import CodeEditor, PatchApplier, build_confirmation_policy
from codewright.errors import CodewrightError

logger = logging.getLogger(__name__)


def create_components(settings: Settings, console: Console) -> dict:
    """Build all components in dependency order.

    Returns dict with the runner plus the resources that need closing.
    """
    client = AnthropicClient(settings)
    github_http = httpx.AsyncClient(
        timeout=httpx.Timeout(connect=10, read=60, write=10, pool=10),
    )

    applier = PatchApplier(build_confirmation_policy(settings, console))
    editor = CodeEditor(client, settings, applier)

    dispatcher = ToolDispatcher()
    register_builtin_tools(dispatcher, settings)
    register_edit_tool(dispatcher, settings, editor)
    register_github_tools(dispatcher, settings, github_http)

    runner = AgentRunner(settings, client)
    runner.set_dispatcher(dispatcher)

    return {
        "client": client,
        "github_http": github_http,
        "editor": editor,
        "dispatcher": dispatcher,
        "runner": runner,
    }


def collect_prompt(settings: Settings, console: Console) -> str:
    """Open the prompt file in the configured editor and return its contents.

    If the editor cannot be launched, whatever the file already holds is used.
    """
    prompt_path = Path(settings.prompt_file)
    prompt_path.touch(exist_ok=True)
    command = [*shlex.split(settings.editor_command), str(prompt_path)]
    try:
        subprocess.run(command, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("Could not launch editor %r: %s", settings.editor_command, e)
        console.print(
            f"[yellow]Editor unavailable; using the current contents of {prompt_path}[/yellow]"
        )
    return prompt_path.read_text(encoding="utf-8").strip()


async def run_sessions(settings: Settings, console: Console) -> None:
    components = create_components(settings, console)
    runner: AgentRunner = components["runner"]
    editor: CodeEditor = components["editor"]
    await runner.start()

    try:
        prompt = collect_prompt(settings, console)
        for iteration in range(settings.max_continuation_iterations):
            if iteration > 0:
                choice = Prompt.ask(
                    "[c]ontinue, [n]ew prompt or [e]xit",
                    choices=["c", "n", "e"],
                    default="c",
                    console=console,
                )
                if choice == "e":
                    break
                if choice == "n":
                    prompt = collect_prompt(settings, console)

            if not prompt:
                console.print("[yellow]Empty prompt, nothing to send.[/yellow]")
                continue

            result = await runner.chat(prompt)
            runner.commit()
            console.print(Markdown(result.text or "_(no text in response)_"))

            if result.completed:
                console.print("[green]Goals completed.[/green]")
                break
        else:
            logger.info("Reached %d continuation iterations", settings.max_continuation_iterations)
    finally:
        try:
            path = runner.save_chat()
            console.print(f"Chat saved to {path}")
        except OSError as e:
            logger.error("Could not save chat log: %s", e)
        logger.info(
            "Token usage: main input=%d output=%d, editor input=%d output=%d",
            components["client"].usage["input_tokens"],
            components["client"].usage["output_tokens"],
            editor.usage["input"],
            editor.usage["output"],
        )
        await runner.close()
        await components["github_http"].aclose()
        Path(settings.prompt_file).unlink(missing_ok=True)


def main() -> None:
    """Entry point -- load settings, configure logging, run the session loop."""
    settings = Settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    logger.info("Model: %s (editor: %s)", settings.model, settings.editor_model)
    logger.info("Workspace: %s", Path(settings.workspace_dir).resolve())
    if not settings.github_token:
        logger.info("GITHUB_ACCESS_TOKEN not set -- commit fetches are unauthenticated")

    console = Console()
    try:
        asyncio.run(run_sessions(settings, console))
    except CodewrightError as e:
        logger.error("Session failed: %s", e)
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        console.print("Interrupted.")


if __name__ == "__main__":
    main()
