"""Application service for chat requests."""

import logging
import time
from collections.abc import AsyncIterator

from chat_relay.errors import ProviderError
from chat_relay.history.base import SessionHistoryStore
from chat_relay.orchestration.base import ChatOrchestrator
from chat_relay.orchestration.capture import CapturingStream
from chat_relay.schemas import ChatMessage, ChatTurn
from chat_relay.sse import done_event, error_event, fragment_event
from chat_relay.validation import validate_session_id

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, orchestrator: ChatOrchestrator, store: SessionHistoryStore) -> None:
        self._orchestrator = orchestrator
        self._store = store

    async def start_chat(self, turn: ChatTurn) -> CapturingStream:
        message_count = len(turn.messages)
        logger.info(
            "Chat request received",
            extra={"session_id": turn.session_id, "message_count": message_count},
        )
        return await self._orchestrator.run(
            turn.session_id,
            turn.messages,
            system_instruction=turn.system_instruction,
            context=turn.context,
        )

    async def stream_events(self, stream: CapturingStream) -> AsyncIterator[str]:
        """Frame fragments as SSE events; a mid-stream failure becomes an error event."""
        start = time.time()
        async with stream:
            try:
                async for fragment in stream:
                    yield fragment_event(fragment)
            except ProviderError as e:
                logger.warning(
                    "Provider stream failed after output started",
                    extra={"provider": e.provider_name, "response_length": len(stream.text)},
                    exc_info=True,
                )
                yield error_event(e.error_type, str(e))
                return
            except Exception as e:
                logger.exception("Chat stream failed after output started")
                yield error_event("internal_error", str(e))
                return

        logger.info(
            "Chat response streamed",
            extra={
                "duration_ms": int((time.time() - start) * 1000),
                "fragment_count": len(stream.fragments),
                "response_length": len(stream.text),
            },
        )
        yield done_event()

    async def get_history(self, session_id: str, limit: int) -> list[ChatMessage]:
        validate_session_id(session_id)
        return await self._store.recent(session_id, limit)
