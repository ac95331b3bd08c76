"""Provider interface shared by all text-generation adapters."""

from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from chat_relay.schemas import ChatMessage


class ChatProvider(Protocol):
    name: str

    async def generate(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Open a generation stream and return an iterator of text fragments.

        Awaiting this call opens the upstream request; failures at that point raise
        ``ProviderError`` before any fragment exists. Errors while iterating the
        returned stream are raised as ``ProviderError`` as well.
        """
        ...
