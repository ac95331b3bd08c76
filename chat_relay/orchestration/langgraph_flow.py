"""LangGraph-based orchestration strategy for chat exchanges."""

from collections.abc import AsyncIterator, Sequence
from typing import Any, NotRequired, TypedDict, cast

from langgraph.graph import END, START, StateGraph

from chat_relay.constants import APP_CONTEXT, APP_SYSTEM_INSTRUCTION, HISTORY_LIMIT
from chat_relay.history.base import SessionHistoryStore
from chat_relay.providers.base import ChatProvider
from chat_relay.providers.pool import ProviderPool
from chat_relay.schemas import ChatMessage

from .base import ChatOrchestrator, ChatPipeline
from .capture import CapturingStream


class ChatGraphState(TypedDict):
    session_id: str
    new_messages: list[ChatMessage]
    system_instruction: str | None
    context: str | None
    persisted: NotRequired[list[ChatMessage]]
    messages: NotRequired[list[ChatMessage]]
    provider: NotRequired[ChatProvider]
    source: NotRequired[AsyncIterator[str]]


class LangGraphChatOrchestrator(ChatPipeline, ChatOrchestrator):
    """Runs the pre-stream steps as graph nodes, then wraps the provider stream."""

    def __init__(
        self,
        store: SessionHistoryStore,
        pool: ProviderPool,
        history_limit: int = HISTORY_LIMIT,
        default_system_instruction: str | None = APP_SYSTEM_INSTRUCTION,
        default_context: str | None = APP_CONTEXT,
    ) -> None:
        super().__init__(
            store,
            pool,
            history_limit=history_limit,
            default_system_instruction=default_system_instruction,
            default_context=default_context,
        )
        graph = StateGraph(ChatGraphState)
        graph.add_node("persist_inbound", self._persist_inbound_node)
        graph.add_node("fetch_history", self._fetch_history_node)
        graph.add_node("assemble", self._assemble_node)
        graph.add_node("select_provider", self._select_provider_node)
        graph.add_node("open_stream", self._open_stream_node)
        graph.add_edge(START, "persist_inbound")
        graph.add_edge("persist_inbound", "fetch_history")
        graph.add_edge("fetch_history", "assemble")
        graph.add_edge("assemble", "select_provider")
        graph.add_edge("select_provider", "open_stream")
        graph.add_edge("open_stream", END)
        self._graph = graph.compile()

    async def _persist_inbound_node(self, state: ChatGraphState) -> dict[str, Any]:
        await self.persist_inbound(state["session_id"], state["new_messages"])
        return {"session_id": state["session_id"]}

    async def _fetch_history_node(self, state: ChatGraphState) -> dict[str, Any]:
        return {"persisted": await self.fetch_history(state["session_id"])}

    def _assemble_node(self, state: ChatGraphState) -> dict[str, Any]:
        return {
            "messages": self.assemble(
                state.get("persisted", []),
                state["new_messages"],
                state["system_instruction"],
                state["context"],
            )
        }

    def _select_provider_node(self, state: ChatGraphState) -> dict[str, Any]:
        return {"provider": self.select_provider()}

    async def _open_stream_node(self, state: ChatGraphState) -> dict[str, Any]:
        return {"source": await self.open_stream(state["provider"], state["messages"])}

    async def run(
        self,
        session_id: str,
        new_messages: Sequence[ChatMessage],
        system_instruction: str | None = None,
        context: str | None = None,
    ) -> CapturingStream:
        self.require_session(session_id)
        initial_state: ChatGraphState = {
            "session_id": session_id,
            "new_messages": list(new_messages),
            "system_instruction": system_instruction,
            "context": context,
        }
        result = cast("ChatGraphState", await self._graph.ainvoke(initial_state))
        source = result.get("source")
        if source is None:
            raise RuntimeError("LangGraph execution did not return a provider stream")
        return self.capture(session_id, source)
