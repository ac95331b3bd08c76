"""Sequential orchestration of a chat exchange."""

from collections.abc import Sequence

from chat_relay.orchestration.base import ChatOrchestrator, ChatPipeline
from chat_relay.orchestration.capture import CapturingStream
from chat_relay.schemas import ChatMessage


class DirectChatOrchestrator(ChatPipeline, ChatOrchestrator):
    async def run(
        self,
        session_id: str,
        new_messages: Sequence[ChatMessage],
        system_instruction: str | None = None,
        context: str | None = None,
    ) -> CapturingStream:
        self.require_session(session_id)
        await self.persist_inbound(session_id, new_messages)
        persisted = await self.fetch_history(session_id)
        messages = self.assemble(persisted, new_messages, system_instruction, context)
        provider = self.select_provider()
        source = await self.open_stream(provider, messages)
        return self.capture(session_id, source)
