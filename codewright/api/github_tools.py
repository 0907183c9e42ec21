"""GitHub commit tool: fetch_commit_changes.

Uses a separate httpx client (not the Anthropic client, which carries
API credentials). The token is sent only when GITHUB_ACCESS_TOKEN is set.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from codewright.api.tools import ToolDispatcher
from codewright.config import Settings
from codewright.errors import CommitFetchError

logger = logging.getLogger(__name__)


def summarize_commit_changes(commit: dict[str, Any]) -> str:
    """One line per changed file: name, additions, deletions and patch."""
    lines = []
    for changed in commit.get("files") or []:
        lines.append(
            f"File: {changed.get('filename', '')}, "
            f"Additions: {changed.get('additions', 0)}, "
            f"Deletions: {changed.get('deletions', 0)}, "
            f"Patch: {changed.get('patch') or ''}\n"
        )
    return "".join(lines)


async def fetch_commit(
    owner: str,
    repo: str,
    sha: str,
    *,
    _settings: Settings,
    _http: httpx.AsyncClient,
) -> dict[str, Any]:
    """GET /repos/{owner}/{repo}/commits/{sha} and return the decoded body."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if _settings.github_token:
        headers["Authorization"] = f"Bearer {_settings.github_token}"

    url = f"{_settings.github_api_url.rstrip('/')}/repos/{owner}/{repo}/commits/{sha}"
    try:
        response = await _http.get(url, headers=headers, timeout=30)
    except httpx.TimeoutException as e:
        raise CommitFetchError(f"Timed out fetching commit {owner}/{repo}@{sha}: {e}") from e
    except httpx.HTTPError as e:
        raise CommitFetchError(f"Could not fetch commit {owner}/{repo}@{sha}: {e}") from e

    if response.status_code != 200:
        raise CommitFetchError(
            f"GitHub API error fetching {owner}/{repo}@{sha} (HTTP {response.status_code}): "
            f"{response.text[:500]}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as e:
        raise CommitFetchError(f"Invalid JSON from GitHub for {owner}/{repo}@{sha}: {e}") from e


async def fetch_commit_changes(
    owner: str,
    repo: str,
    sha: str,
    *,
    _settings: Settings,
    _http: httpx.AsyncClient,
) -> str:
    logger.info("Fetching commit changes for %s/%s with SHA: %s", owner, repo, sha)
    commit = await fetch_commit(owner, repo, sha, _settings=_settings, _http=_http)
    summary = summarize_commit_changes(commit)
    logger.info("Fetched %d changed file(s) for %s/%s", len(commit.get("files") or []), owner, repo)
    return summary


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_github_tools(
    dispatcher: ToolDispatcher,
    settings: Settings,
    http_client: httpx.AsyncClient,
) -> None:
    """Register fetch_commit_changes with the dispatcher.

    Creates a closure wrapper that injects settings and the httpx client.
    """

    async def _fetch_commit_changes(owner: str, repo: str, sha: str) -> str:
        return await fetch_commit_changes(owner, repo, sha, _settings=settings, _http=http_client)

    dispatcher.register("fetch_commit_changes", _fetch_commit_changes)
