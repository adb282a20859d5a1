"""
Extraction backends.

A backend turns an extraction prompt into structured component details.
The engine works without one (mock synthesis); ``LLMExtractionBackend``
delegates to an OpenRouter-hosted model.
"""

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from flowscribe.config.models import LLMConfig
from flowscribe.errors import ExtractionBackendError
from flowscribe.utils.llm_client import AsyncLLMClient, LLMClientError, Message

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a software architect documenting one step of an end-to-end "
    "operation. Answer only with a JSON object."
)


@runtime_checkable
class ExtractionBackend(Protocol):
    """Produces component details for an extraction prompt."""

    async def extract(self, prompt: str) -> dict[str, Optional[str]]:
        """Return ``title``, ``description`` and ``sourceExcerpt`` (values may be None).

        Raises:
            ExtractionBackendError: If no usable answer could be produced
        """
        ...


class LLMExtractionBackend:
    """Extraction backend backed by an LLM chat completion."""

    def __init__(self, client: AsyncLLMClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: LLMConfig, api_key: Optional[str] = None) -> "LLMExtractionBackend":
        return cls(
            AsyncLLMClient(
                model=config.model,
                api_key=api_key,
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            )
        )

    async def extract(self, prompt: str) -> dict[str, Optional[str]]:
        try:
            response = await self._client.send_message(
                [
                    Message(role="system", content=SYSTEM_PROMPT),
                    Message(role="user", content=prompt),
                ],
                json_mode=True,
            )
            data = response.parse_json()
        except LLMClientError as e:
            raise ExtractionBackendError(f"LLM extraction failed: {e}") from e

        return {
            "title": _optional_text(data.get("title")),
            "description": _optional_text(data.get("description")),
            "sourceExcerpt": _optional_text(data.get("sourceExcerpt")),
        }

    async def close(self) -> None:
        await self._client.close()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
