"""Unit tests for codewright/api/models.py -- message variants and ApiResponse helpers."""

import dataclasses

import pytest

from codewright.api.models import (
    ApiResponse,
    Message,
    Role,
    TextContent,
    ToolInvocation,
    ToolResult,
    ToolResultContent,
    ToolUseContent,
)


class TestMessage:
    def test_tool_use_requires_assistant(self):
        with pytest.raises(ValueError):
            Message(Role.USER, ToolUseContent((ToolInvocation("t", "read_file"),)))

    def test_tool_result_requires_user(self):
        with pytest.raises(ValueError):
            Message(Role.ASSISTANT, ToolResultContent((ToolResult("t", "x"),)))

    def test_text_allowed_for_both_roles(self):
        assert Message(Role.USER, TextContent("hi")).role is Role.USER
        assert Message(Role.ASSISTANT, TextContent("hi")).role is Role.ASSISTANT

    def test_messages_are_immutable(self):
        message = Message.user("hi")
        with pytest.raises(dataclasses.FrozenInstanceError):
            message.role = Role.ASSISTANT

    def test_error_result_wire_shape(self):
        message = Message.tool_results([ToolResult("t1", "boom", is_error=True)])
        assert message.to_api() == {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "t1", "content": "boom", "is_error": True}],
        }

    def test_tool_use_wire_shape(self):
        message = Message.tool_use([ToolInvocation("t1", "list_files", {"path": "."})])
        assert message.to_api() == {
            "role": "assistant",
            "content": [{"type": "tool_use", "id": "t1", "name": "list_files", "input": {"path": "."}}],
        }


class TestApiResponse:
    def test_text_concatenates_in_order(self):
        response = ApiResponse(
            content=[
                {"type": "text", "text": "a"},
                {"type": "tool_use", "id": "t", "name": "read_file", "input": {}},
                {"type": "text", "text": "b"},
            ],
            stop_reason="tool_use",
        )
        assert response.text() == "ab"

    def test_tool_invocations(self):
        response = ApiResponse(
            content=[
                {"type": "tool_use", "id": "t1", "name": "read_file", "input": {"path": "x"}},
                {"type": "tool_use", "id": "t2", "name": "list_files"},
            ],
            stop_reason="tool_use",
        )
        assert response.tool_invocations() == [
            ToolInvocation("t1", "read_file", {"path": "x"}),
            ToolInvocation("t2", "list_files", {}),
        ]
