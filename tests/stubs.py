"""Stub providers and stores shared by the test modules."""

import asyncio
from collections.abc import AsyncIterator, Sequence

from chat_relay.errors import ProviderError, StoreError
from chat_relay.schemas import ChatMessage


class StubProvider:
    def __init__(
        self,
        name: str,
        fragments: Sequence[str] = ("ok",),
        fail_on_open: Exception | None = None,
        fail_after: int | None = None,
        block_after: int | None = None,
    ) -> None:
        self.name = name
        self._fragments = list(fragments)
        self._fail_on_open = fail_on_open
        self._fail_after = fail_after
        self._block_after = block_after
        self.calls: list[list[ChatMessage]] = []
        self.closed = False

    async def generate(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        if self._fail_on_open is not None:
            raise self._fail_on_open
        return self._stream()

    async def _stream(self) -> AsyncIterator[str]:
        try:
            for index, fragment in enumerate(self._fragments):
                if self._fail_after is not None and index == self._fail_after:
                    raise ProviderError(f"{self.name} stream failed: boom", self.name)
                if self._block_after is not None and index == self._block_after:
                    await asyncio.Event().wait()
                yield fragment
            if self._fail_after is not None and self._fail_after >= len(self._fragments):
                raise ProviderError(f"{self.name} stream failed: boom", self.name)
        finally:
            self.closed = True


class RecordingStore:
    """In-memory store that records calls and can be told to fail."""

    def __init__(
        self,
        history: Sequence[ChatMessage] | None = None,
        fail_append: bool = False,
        fail_recent: bool = False,
        fail_append_roles: Sequence[str] = (),
    ) -> None:
        self.messages: dict[str, list[ChatMessage]] = {}
        self.appended: list[tuple[str, ChatMessage]] = []
        self.recent_calls: list[tuple[str, int]] = []
        self._history = list(history) if history is not None else None
        self._fail_append = fail_append
        self._fail_recent = fail_recent
        self._fail_append_roles = set(fail_append_roles)

    async def append(self, session_id: str, message: ChatMessage) -> None:
        if self._fail_append or message.role in self._fail_append_roles:
            raise StoreError("append unavailable")
        self.appended.append((session_id, message))
        self.messages.setdefault(session_id, []).append(message)

    async def recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        self.recent_calls.append((session_id, limit))
        if self._fail_recent:
            raise StoreError("read unavailable")
        if self._history is not None:
            return list(self._history)
        return list(self.messages.get(session_id, [])[-limit:])

    def appended_by_role(self, role: str) -> list[ChatMessage]:
        return [message for _, message in self.appended if message.role == role]
