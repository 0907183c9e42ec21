"""Shared fixtures: settings isolated to a temporary workspace."""

import pytest

from codewright.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every path at tmp_path."""
    return Settings(
        ANTHROPIC_API_KEY="test-key",
        workspace_dir=str(tmp_path),
        transcript_dir=str(tmp_path),
        prompt_file=str(tmp_path / "prompt.txt"),
        max_tokens=1024,
        _env_file=None,
    )
