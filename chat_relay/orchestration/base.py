"""Orchestration interfaces and the pipeline steps shared by orchestrators."""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from chat_relay.constants import APP_CONTEXT, APP_SYSTEM_INSTRUCTION, HISTORY_LIMIT
from chat_relay.errors import NoProviderAvailableError, ProviderError, SessionError
from chat_relay.history.base import SessionHistoryStore, try_append, try_recent
from chat_relay.providers.base import ChatProvider
from chat_relay.providers.pool import ProviderPool
from chat_relay.schemas import ChatMessage

from .assembler import assemble_history, merge_instructions
from .capture import CapturingStream

logger = logging.getLogger(__name__)


class ChatOrchestrator(Protocol):
    async def run(
        self,
        session_id: str,
        new_messages: Sequence[ChatMessage],
        system_instruction: str | None = None,
        context: str | None = None,
    ) -> CapturingStream:
        """Prepare one exchange and return its live, capturing stream."""
        ...


class ChatPipeline:
    """Individual steps of an orchestration run.

    Store operations are best-effort; only provider selection and opening the
    provider stream can fail a run.
    """

    def __init__(
        self,
        store: SessionHistoryStore,
        pool: ProviderPool,
        history_limit: int = HISTORY_LIMIT,
        default_system_instruction: str | None = APP_SYSTEM_INSTRUCTION,
        default_context: str | None = APP_CONTEXT,
    ) -> None:
        self._store = store
        self._pool = pool
        self._history_limit = history_limit
        self._default_system_instruction = default_system_instruction
        self._default_context = default_context

    @staticmethod
    def require_session(session_id: str) -> None:
        if not session_id:
            raise SessionError("session_id is required", code="session_missing")

    async def persist_inbound(self, session_id: str, messages: Sequence[ChatMessage]) -> None:
        for index, message in enumerate(messages):
            outcome = await try_append(self._store, session_id, message)
            if not outcome.ok:
                logger.warning(
                    "Failed to persist inbound message; continuing",
                    extra={"session_id": session_id, "message_index": index},
                    exc_info=outcome.error,
                )

    async def fetch_history(self, session_id: str) -> list[ChatMessage]:
        outcome = await try_recent(self._store, session_id, self._history_limit)
        if not outcome.ok:
            logger.warning(
                "Failed to fetch session history; falling back to submitted messages",
                extra={"session_id": session_id},
                exc_info=outcome.error,
            )
            return []
        return outcome.value or []

    def assemble(
        self,
        persisted: Sequence[ChatMessage],
        new_messages: Sequence[ChatMessage],
        system_instruction: str | None,
        context: str | None,
    ) -> list[ChatMessage]:
        return assemble_history(
            persisted,
            new_messages,
            system_instruction=merge_instructions(
                self._default_system_instruction, system_instruction
            ),
            context=merge_instructions(self._default_context, context),
        )

    def select_provider(self) -> ChatProvider:
        provider = self._pool.select_next()
        if provider is None:
            raise NoProviderAvailableError("No AI service available")
        logger.info("Using provider", extra={"provider": provider.name})
        return provider

    async def open_stream(
        self, provider: ChatProvider, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        try:
            return await provider.generate(messages)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"{provider.name} service failed: {e}", provider.name) from e

    def capture(self, session_id: str, source: AsyncIterator[str]) -> CapturingStream:
        async def persist_outbound(text: str) -> None:
            if not text:
                return
            outcome = await try_append(
                self._store, session_id, ChatMessage(role="assistant", content=text)
            )
            if not outcome.ok:
                logger.warning(
                    "Failed to persist assistant response",
                    extra={"session_id": session_id, "response_length": len(text)},
                    exc_info=outcome.error,
                )

        return CapturingStream(source, on_complete=persist_outbound)
