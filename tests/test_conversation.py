"""Unit tests for codewright/conversation.py -- ConversationStore."""

import re

import pytest

from codewright.api.models import Message, ToolInvocation, ToolResult
from codewright.conversation import ConversationStore


def _texts(messages):
    return [m.content.text for m in messages]


class TestHistory:
    def test_fifo_eviction_keeps_last_capacity(self):
        store = ConversationStore(capacity=3)
        for i in range(5):
            store.add_to_history(Message.user(f"m{i}"))
        assert _texts(store.history) == ["m2", "m3", "m4"]

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ConversationStore(capacity=0)

    def test_capacity_one(self):
        store = ConversationStore(capacity=1)
        store.add_to_history(Message.user("a"))
        store.add_to_history(Message.user("b"))
        assert _texts(store.history) == ["b"]


class TestCurrent:
    def test_current_is_never_evicted(self):
        store = ConversationStore(capacity=1)
        for i in range(4):
            store.add_to_current(Message.user(f"c{i}"))
        assert len(store.current) == 4

    def test_combined_view_is_history_then_current(self):
        store = ConversationStore(capacity=10)
        store.add_to_history(Message.user("h1"))
        store.add_to_current(Message.user("c1"))
        store.add_to_history(Message.assistant("h2"))
        assert _texts(store.combined_view()) == ["h1", "h2", "c1"]

    def test_commit_moves_current_in_order(self):
        store = ConversationStore(capacity=10)
        store.add_to_history(Message.user("h"))
        store.add_to_current(Message.user("a"))
        store.add_to_current(Message.assistant("b"))
        store.commit_current_to_history()
        assert store.current == []
        assert _texts(store.history) == ["h", "a", "b"]

    def test_commit_applies_eviction(self):
        store = ConversationStore(capacity=2)
        store.add_to_history(Message.user("old"))
        for text in ("a", "b", "c"):
            store.add_to_current(Message.user(text))
        store.commit_current_to_history()
        assert _texts(store.history) == ["b", "c"]

    def test_clear_current(self):
        store = ConversationStore()
        store.add_to_current(Message.user("x"))
        store.clear_current()
        assert store.current == []
        assert store.combined_view() == []


class TestExport:
    def _store(self):
        store = ConversationStore()
        store.add_to_history(Message.user("build it"))
        store.add_to_current(Message.tool_use([ToolInvocation("t1", "read_file", {"path": "a.py"})]))
        store.add_to_current(Message.tool_results([ToolResult("t1", "print('hi')")]))
        store.add_to_current(Message.assistant("done"))
        return store

    def test_to_api_shapes(self):
        payload = self._store().to_api()
        assert payload[0] == {"role": "user", "content": [{"type": "text", "text": "build it"}]}
        assert payload[1]["role"] == "assistant"
        assert payload[1]["content"][0]["type"] == "tool_use"
        assert payload[2]["content"][0] == {
            "type": "tool_result",
            "tool_use_id": "t1",
            "content": "print('hi')",
        }

    def test_export_markdown(self):
        text = self._store().export_markdown()
        assert "## User" in text
        assert "## Assistant" in text
        assert "### Tool Use: read_file" in text
        assert '"path": "a.py"' in text
        assert "### Tool Result" in text
        assert text.index("build it") < text.index("done")

    def test_save_chat(self, tmp_path):
        path = self._store().save_chat(tmp_path)
        assert path.parent == tmp_path
        assert re.fullmatch(r"Chat_\d{4}\.md", path.name)
        assert "done" in path.read_text()
