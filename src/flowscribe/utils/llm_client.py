"""
Async chat completion client for OpenRouter.

Used by the optional LLM extraction backend to phrase component titles
and descriptions. Requests are retried with exponential backoff
(tenacity) on rate limits and server-side failures; authentication
failures are raised immediately.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from flowscribe.config.environment import get_api_key

logger = logging.getLogger(__name__)


OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_CHAT_ENDPOINT = "/chat/completions"

# Upper bound on a single backoff wait, in seconds
MAX_BACKOFF = 30


class LLMClientError(Exception):
    """Base class for chat completion failures."""


class AuthenticationError(LLMClientError):
    """Missing or rejected API key."""


class RateLimitError(LLMClientError):
    """The provider answered 429."""


class APIError(LLMClientError):
    """Transport failure, error status or unusable response body."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


_RETRYABLE = (RateLimitError, APIError)


@dataclass(frozen=True)
class TokenUsage:
    """Tokens billed for one completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_payload(cls, usage: Optional[dict[str, Any]]) -> TokenUsage:
        usage = usage or {}
        return cls(
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
        )


@dataclass
class LLMResponse:
    """A completed chat turn.

    Attributes:
        content: Assistant message text
        model: Model that answered
        usage: Token counts
        finish_reason: Provider's stop reason
        latency_ms: Wall time of the successful attempt
    """

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    finish_reason: str = "stop"
    latency_ms: int = 0

    def parse_json(self) -> dict[str, Any]:
        """Decode the content as a JSON object.

        Markdown code fences (with or without a ``json`` tag) are stripped.

        Raises:
            APIError: If the content is not a JSON object
        """
        text = self.content.strip()
        if text.startswith("```"):
            text = text.strip("`").removeprefix("json").removeprefix("JSON")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise APIError(f"Response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise APIError(f"Expected a JSON object, got {type(data).__name__}")
        return data


@dataclass
class Message:
    """One chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def raise_for_status(response: httpx.Response) -> None:
    """Map error statuses to client exceptions."""
    status = response.status_code
    if status < 400:
        return
    if status == 401:
        raise AuthenticationError("API key rejected by provider")
    if status == 429:
        logger.warning("Rate limited (Retry-After: %s)", response.headers.get("Retry-After"))
        raise RateLimitError("Rate limit exceeded")

    try:
        message = response.json().get("error", {}).get("message") or response.text
    except (json.JSONDecodeError, AttributeError):
        message = response.text
    raise APIError(message, status_code=status)


def parse_completion(payload: dict[str, Any], default_model: str, latency_ms: int) -> LLMResponse:
    """Build an LLMResponse from a chat completions body.

    Raises:
        APIError: If the body has no choices
    """
    choices = payload.get("choices") or []
    if not choices:
        raise APIError("No choices in response")
    first = choices[0]
    return LLMResponse(
        content=(first.get("message") or {}).get("content") or "",
        model=payload.get("model", default_model),
        usage=TokenUsage.from_payload(payload.get("usage")),
        finish_reason=first.get("finish_reason") or "stop",
        latency_ms=latency_ms,
    )


class AsyncLLMClient:
    """OpenRouter chat completions over a shared ``httpx.AsyncClient``.

    Example:
        async with AsyncLLMClient(model="anthropic/claude-3-5-haiku") as client:
            reply = await client.send_message(
                [Message(role="user", content="Describe the database tier")],
                json_mode=True,
            )
            details = reply.parse_json()
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = 60.0,
        max_retries: int = 3,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        backoff_multiplier: float = 1.0,
        app_title: str = "FlowScribe",
    ) -> None:
        """Configure the client; no connection is opened until first use.

        Args:
            model: Model identifier sent with every request
            api_key: OpenRouter key; OPENROUTER_API_KEY when omitted
            base_url: API root
            timeout: Per-request timeout in seconds
            max_retries: Attempts per request, including the first
            max_tokens: Completion token limit
            temperature: Sampling temperature
            backoff_multiplier: Scale of the exponential backoff (0 disables waiting)
            app_title: Sent as the X-Title header
        """
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._backoff_multiplier = backoff_multiplier
        self._app_title = app_title
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def model(self) -> str:
        return self._model

    async def __aenter__(self) -> AsyncLLMClient:
        self._connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _connect(self) -> httpx.AsyncClient:
        if self._http is None:
            key = self._api_key or get_api_key("openrouter")
            if not key:
                raise AuthenticationError(
                    "No OpenRouter API key: set OPENROUTER_API_KEY or pass api_key"
                )
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(key),
                timeout=self._timeout,
            )
        return self._http

    def _headers(self, key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "X-Title": self._app_title,
        }

    async def close(self) -> None:
        """Release the HTTP connection pool; safe to call repeatedly."""
        http, self._http = self._http, None
        if http is not None:
            await http.aclose()

    async def send_message(self, messages: list[Message], json_mode: bool = False) -> LLMResponse:
        """Run one chat completion.

        Args:
            messages: Conversation so far
            json_mode: Ask the provider for a JSON object answer

        Returns:
            The assistant reply

        Raises:
            AuthenticationError: Missing or rejected key (not retried)
            RateLimitError: Still rate limited after the last attempt
            APIError: Any other failure after the last attempt
        """
        http = self._connect()
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._backoff_multiplier, max=MAX_BACKOFF),
            retry=retry_if_exception_type(_RETRYABLE),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                logger.debug("Completion request to %s, attempt %d/%d", self._model, number, self._max_retries)
                return await self._post(http, body)

        raise APIError("Retry loop ended without a result")

    async def _post(self, http: httpx.AsyncClient, body: dict[str, Any]) -> LLMResponse:
        started = time.perf_counter()
        try:
            response = await http.post(OPENROUTER_CHAT_ENDPOINT, json=body)
        except httpx.TransportError as e:
            raise APIError(f"Transport error: {e}") from e
        raise_for_status(response)

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}") from e
        return parse_completion(payload, self._model, int((time.perf_counter() - started) * 1000))
