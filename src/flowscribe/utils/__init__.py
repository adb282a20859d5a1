"""Shared helpers. Currently the OpenRouter chat client used by the LLM extraction backend."""

from flowscribe.utils.llm_client import (
    APIError,
    AsyncLLMClient,
    AuthenticationError,
    LLMClientError,
    LLMResponse,
    Message,
    RateLimitError,
    TokenUsage,
)

__all__ = [
    "APIError",
    "AsyncLLMClient",
    "AuthenticationError",
    "LLMClientError",
    "LLMResponse",
    "Message",
    "RateLimitError",
    "TokenUsage",
]
