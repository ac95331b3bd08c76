"""OpenAI-compatible streaming provider (OpenRouter, Cerebras)."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from openai import AsyncOpenAI

from chat_relay.errors import ProviderError
from chat_relay.message_mappers import build_openai_chat_messages
from chat_relay.provider_registry import ProviderSpec
from chat_relay.schemas import ChatMessage

logger = logging.getLogger(__name__)


class OpenAICompatibleChatProvider:
    def __init__(
        self,
        name: str,
        spec: ProviderSpec,
        get_client: Callable[[], AsyncOpenAI],
        open_stream: Callable[[AsyncOpenAI, dict[str, Any]], Awaitable[Any]],
    ) -> None:
        self.name = name
        self._spec = spec
        self._get_client = get_client
        self._open_stream = open_stream

    async def generate(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        request_params: dict[str, Any] = {
            "model": self._spec.model,
            "messages": build_openai_chat_messages(messages),
            "temperature": self._spec.temperature,
            "max_tokens": self._spec.max_tokens,
            "top_p": self._spec.top_p,
            "stream": True,
        }

        start = time.time()
        try:
            stream = await self._open_stream(self._get_client(), request_params)
        except Exception as e:
            raise ProviderError(f"{self.name} service failed: {e}", self.name) from e

        logger.info(
            "Provider stream opened",
            extra={
                "provider": self.name,
                "model": self._spec.model,
                "open_duration_ms": int((time.time() - start) * 1000),
                "message_count": len(messages),
            },
        )
        return self._iter_fragments(stream)

    async def _iter_fragments(self, stream: Any) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                choices = chunk.choices or []
                delta = choices[0].delta if choices else None
                yield (delta.content if delta else None) or ""
        except Exception as e:
            raise ProviderError(f"{self.name} stream failed: {e}", self.name) from e
        finally:
            await stream.close()
