"""Session history store interface and result wrappers."""

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from chat_relay.errors import StoreError
from chat_relay.schemas import ChatMessage

T = TypeVar("T")


class SessionHistoryStore(Protocol):
    async def append(self, session_id: str, message: ChatMessage) -> None:
        """Persist one message under the session; raises StoreError on failure."""
        ...

    async def recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        """Return the newest ``limit`` messages, oldest first; raises StoreError."""
        ...


@dataclass(frozen=True)
class StoreOutcome(Generic[T]):
    value: T | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def try_append(
    store: SessionHistoryStore, session_id: str, message: ChatMessage
) -> StoreOutcome[None]:
    try:
        await store.append(session_id, message)
    except StoreError as e:
        return StoreOutcome(error=e)
    return StoreOutcome()


async def try_recent(
    store: SessionHistoryStore, session_id: str, limit: int
) -> StoreOutcome[list[ChatMessage]]:
    try:
        messages = await store.recent(session_id, limit)
    except StoreError as e:
        return StoreOutcome(error=e)
    return StoreOutcome(value=messages)
