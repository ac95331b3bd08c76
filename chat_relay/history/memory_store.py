"""In-process session history store."""

import asyncio
from collections import defaultdict

from chat_relay.schemas import ChatMessage


class InMemorySessionHistoryStore:
    """Keeps history in a dict of per-session lists; lost on restart."""

    def __init__(self, max_messages_per_session: int | None = None) -> None:
        self._messages: defaultdict[str, list[ChatMessage]] = defaultdict(list)
        self._max_messages = max_messages_per_session
        self._lock = asyncio.Lock()

    async def append(self, session_id: str, message: ChatMessage) -> None:
        async with self._lock:
            messages = self._messages[session_id]
            messages.append(message)
            if self._max_messages is not None and len(messages) > self._max_messages:
                del messages[: len(messages) - self._max_messages]

    async def recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        async with self._lock:
            return list(self._messages.get(session_id, [])[-limit:])
