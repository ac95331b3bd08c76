"""Bedrock provider implementation streaming through LangChain."""

import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessageChunk

from chat_relay.errors import ProviderError
from chat_relay.message_mappers import build_bedrock_messages
from chat_relay.provider_registry import ProviderSpec
from chat_relay.schemas import ChatMessage

logger = logging.getLogger(__name__)


def _chunk_text(chunk: BaseMessageChunk) -> str:
    if isinstance(chunk.content, str):
        return chunk.content
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in chunk.content
    )


class BedrockChatProvider:
    def __init__(
        self,
        name: str,
        spec: ProviderSpec,
        get_chat_model: Callable[[], BaseChatModel],
    ) -> None:
        self.name = name
        self._spec = spec
        self._get_chat_model = get_chat_model

    async def generate(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        lc_messages = build_bedrock_messages(messages)

        start = time.time()
        chunks = self._get_chat_model().astream(
            lc_messages,
            config={
                "run_name": "chat_relay_bedrock_stream",
                "tags": ["chat-relay", self._spec.model],
                "metadata": {"message_count": len(messages)},
            },
        )
        # Converse only fails once iterated; pull the first chunk so a rejected
        # call surfaces before the stream is handed out.
        first: Any = None
        try:
            first = await anext(chunks)
        except StopAsyncIteration:
            pass
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
        return self._iter_fragments(first, chunks)

    async def _iter_fragments(
        self, first: BaseMessageChunk | None, chunks: AsyncIterator[BaseMessageChunk]
    ) -> AsyncIterator[str]:
        if first is None:
            return
        try:
            yield _chunk_text(first)
            async for chunk in chunks:
                yield _chunk_text(chunk)
        except Exception as e:
            raise ProviderError(f"{self.name} stream failed: {e}", self.name) from e
        finally:
            close = getattr(chunks, "aclose", None)
            if close is not None:
                await close()
