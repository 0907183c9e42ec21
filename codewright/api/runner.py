"""Agent runner -- drives the request / tool-execution loop.

One chat() call is one session: the user prompt is sent with the tool
definitions, requested tools are executed through the ToolDispatcher,
their results are appended to the conversation and the conversation is
resent. The loop is an explicit state machine with a round counter and
a bounded rate-limit retry per request (no recursion).
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any

from codewright.api.client import AnthropicClient
from codewright.api.models import ApiResponse, Message, SessionResult, ToolInvocation, ToolResult
from codewright.api.tools import ToolDispatcher
from codewright.config import Settings
from codewright.conversation import ConversationStore
from codewright.errors import CodewrightError, RateLimitedError, RemoteError, SessionError
from codewright.prompts import build_system_prompt

logger = logging.getLogger(__name__)


class AgentRunner:
    """Runs agent sessions against the Anthropic Messages API.

    The conversation store persists across sessions; each chat() works
    in the store's current buffer, which the caller commits to history
    with commit() once the session's output has been consumed.
    """

    def __init__(
        self,
        settings: Settings,
        client: AnthropicClient,
        store: ConversationStore | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._store = store or ConversationStore(settings.history_size)
        self._system_prompt = system_prompt or build_system_prompt(settings.completion_marker)
        self._dispatcher: ToolDispatcher | None = None

    @property
    def store(self) -> ConversationStore:
        return self._store

    def set_dispatcher(self, dispatcher: ToolDispatcher) -> None:
        """Set the tool dispatcher for tool loop execution."""
        self._dispatcher = dispatcher

    async def start(self) -> None:
        await self._client.start()

    async def close(self) -> None:
        await self._client.close()

    async def chat(self, prompt: str) -> SessionResult:
        """Run one session for `prompt` and return its final text.

        The loop:
        1. Clear current, append the user prompt, send
        2. Accumulate the response text and collect tool invocations
        3. Stop if the completion marker appeared or no tools were requested
        4. Stop if max_tool_rounds follow-up requests were already made
        5. Otherwise execute each invocation, appending the tool-use /
           tool-result pair, resend and go to 2

        Raises SessionError naming the phase that failed.
        """
        settings = self._settings
        marker = settings.completion_marker
        tools = self._dispatcher.tool_definitions() if self._dispatcher else []

        self._store.clear_current()
        self._store.add_to_current(Message.user(prompt))

        response = await self._send(tools, phase="request")
        text = ""
        rounds = 0
        tool_calls = 0

        while True:
            text += response.text()
            invocations = response.tool_invocations()

            if marker in text or not invocations:
                break
            if rounds >= settings.max_tool_rounds:
                logger.warning(
                    "Tool round bound reached (%d); %d pending tool call(s) not executed",
                    settings.max_tool_rounds, len(invocations),
                )
                break

            for invocation in invocations:
                result = await self._execute(invocation)
                self._store.add_to_current(Message.tool_use([invocation]))
                self._store.add_to_current(Message.tool_results([result]))
                tool_calls += 1

            rounds += 1
            response = await self._send(tools, phase=f"tool round {rounds}")

        if text:
            self._store.add_to_current(Message.assistant(text))

        completed = marker in text
        logger.info(
            "Session finished: rounds=%d tool_calls=%d completed=%s",
            rounds, tool_calls, completed,
        )
        return SessionResult(text=text, completed=completed, rounds=rounds, tool_calls=tool_calls)

    def commit(self) -> None:
        """Move the current session's messages into history."""
        self._store.commit_current_to_history()

    def save_chat(self, directory: str | Path | None = None) -> Path:
        return self._store.save_chat(directory or self._settings.transcript_dir)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(self, tools: list[dict[str, Any]], phase: str) -> ApiResponse:
        """Send the combined conversation, retrying rate-limit rejections.

        Delay grows by rate_limit_backoff per attempt, capped at
        rate_limit_max_delay; at most rate_limit_max_retries retries.
        """
        settings = self._settings
        attempt = 0
        while True:
            try:
                return await self._client.send(
                    system_prompt=self._system_prompt,
                    messages=self._store.to_api(),
                    tools=tools or None,
                )
            except RateLimitedError as e:
                if attempt >= settings.rate_limit_max_retries:
                    raise SessionError(
                        phase, f"still rate limited after {attempt} retries: {e}"
                    ) from e
                delay = settings.retry_delay(attempt)
                if e.retry_after is not None:
                    delay = max(delay, min(e.retry_after, settings.rate_limit_max_delay))
                attempt += 1
                logger.warning(
                    "Rate limited during %s, retry %d/%d in %.1fs",
                    phase, attempt, settings.rate_limit_max_retries, delay,
                )
                await asyncio.sleep(delay)
            except RemoteError as e:
                raise SessionError(phase, str(e)) from e

    async def _execute(self, invocation: ToolInvocation) -> ToolResult:
        if not self._dispatcher:
            raise RuntimeError("No tool dispatcher set -- call set_dispatcher() first")

        logger.info("Tool use: %s (%s)", invocation.name, invocation.id)
        start_time = time.monotonic()
        try:
            content = await self._dispatcher.dispatch(invocation.name, invocation.input)
        except CodewrightError as e:
            if self._settings.tool_errors_fatal:
                raise SessionError(f"tool:{invocation.name}", str(e)) from e
            logger.warning("Tool %s failed: %s", invocation.name, e)
            return ToolResult(tool_use_id=invocation.id, content=str(e), is_error=True)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("Tool %s finished in %dms", invocation.name, duration_ms)
        return ToolResult(tool_use_id=invocation.id, content=content)
