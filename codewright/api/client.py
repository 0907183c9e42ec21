"""Anthropic Messages API client over httpx.

Sends a single request per send() call and classifies failures. Retry
policy belongs to the caller: rate-limit rejections surface as
RateLimitedError so the agent loop can back off and resend.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from codewright.api.models import ApiResponse
from codewright.config import Settings
from codewright.errors import RateLimitedError, RemoteError, ResponseParseError

logger = logging.getLogger(__name__)

# Anthropic API version header
_API_VERSION = "2023-06-01"
_PROMPT_CACHING_BETA = "prompt-caching-2024-07-31"

# Substrings that mark an error message as a rate-limit rejection
_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "too many requests")


def is_rate_limit(status_code: int | None, error_type: str | None, message: str) -> bool:
    if status_code == 429 or error_type == "rate_limit_error":
        return True
    lowered = message.lower()
    return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)


class AnthropicClient:
    """Thin async wrapper around POST /v1/messages.

    Call start() before send(); close() releases the connection pool.
    Token usage of every successful response is summed in `usage`.
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._http = http
        self.usage: dict[str, int] = {"input_tokens": 0, "output_tokens": 0}

    async def start(self) -> None:
        """Initialize the httpx client with auth and timeout settings."""
        if self._http is not None:
            return
        settings = self._settings

        headers: dict[str, str] = {
            "anthropic-version": _API_VERSION,
            "content-type": "application/json",
        }
        if settings.prompt_caching:
            headers["anthropic-beta"] = _PROMPT_CACHING_BETA
        if settings.anthropic_api_key:
            headers["x-api-key"] = settings.anthropic_api_key
        else:
            logger.warning("ANTHROPIC_API_KEY is not set -- API calls will fail")

        timeout = httpx.Timeout(
            connect=settings.api_timeout_connect,
            read=settings.api_timeout_read,
            write=10.0,
            pool=10.0,
        )
        self._http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            headers=headers,
            timeout=timeout,
        )
        logger.info("httpx client initialized for %s", settings.api_base_url)

    async def close(self) -> None:
        """Clean up httpx client."""
        if self._http:
            await self._http.aclose()
            self._http = None

    def build_payload(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Build Anthropic Messages API request payload."""
        system: dict[str, Any] = {"type": "text", "text": system_prompt}
        if self._settings.prompt_caching:
            system["cache_control"] = {"type": "ephemeral"}
        payload: dict[str, Any] = {
            "model": model or self._settings.model,
            "max_tokens": max_tokens or self._settings.max_tokens,
            "system": [system],
            "messages": messages,
        }
        if tools:
            payload["tools"] = tools
        return payload

    async def send(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> ApiResponse:
        """Send one request and return the parsed response.

        Raises RateLimitedError for rate-limit rejections, ResponseParseError
        for undecodable bodies and RemoteError for everything else.
        """
        if not self._http:
            raise RuntimeError("httpx client not initialized -- call start() first")

        payload = self.build_payload(system_prompt, messages, tools, model, max_tokens)
        try:
            response = await self._http.post("/v1/messages", json=payload)
        except httpx.TimeoutException as e:
            raise RemoteError(f"API request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteError(f"HTTP error: {e}") from e

        if response.status_code != 200:
            raise self._classify_error(response)

        try:
            data = response.json()
            parsed = ApiResponse(
                content=_content_blocks(data["content"]),
                stop_reason=data.get("stop_reason") or "",
                usage=data.get("usage"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ResponseParseError(
                f"Could not decode API response: {e}", status_code=response.status_code
            ) from e

        self._record_usage(parsed.usage)
        return parsed

    def _classify_error(self, response: httpx.Response) -> RemoteError:
        status = response.status_code
        try:
            error = response.json().get("error", {})
            error_type = error.get("type", "unknown")
            error_msg = error.get("message", "unknown error")
        except (ValueError, AttributeError):
            error_type = "http_error"
            error_msg = f"HTTP {status}: {response.text[:500]}"

        message = f"Anthropic API error ({status}): {error_type} - {error_msg}"
        if is_rate_limit(status, error_type, error_msg):
            retry_after = _parse_retry_after(response.headers.get("retry-after"))
            logger.warning("Rate limited by API (%d): %s", status, error_msg)
            return RateLimitedError(
                message, retry_after=retry_after, status_code=status, error_type=error_type
            )
        logger.error("API error %d (%s): %s", status, error_type, error_msg)
        return RemoteError(message, status_code=status, error_type=error_type)

    def _record_usage(self, usage: dict[str, int] | None) -> None:
        if not usage:
            return
        for key in ("input_tokens", "output_tokens"):
            self.usage[key] += int(usage.get(key, 0) or 0)


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _content_blocks(content: Any) -> list[dict[str, Any]]:
    if not isinstance(content, list):
        raise TypeError(f"content must be a list, got {type(content).__name__}")
    for block in content:
        if not isinstance(block, dict):
            raise TypeError(f"content block must be an object, got {type(block).__name__}")
        if block.get("type") == "tool_use":
            for key in ("id", "name"):
                if not isinstance(block.get(key), str):
                    raise KeyError(f"tool_use block without {key}")
    return content
