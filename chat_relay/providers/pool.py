"""Round-robin selection over a fixed list of providers."""

import threading
from collections.abc import Sequence

from .base import ChatProvider


class ProviderPool:
    """Owns the rotation cursor for a fixed provider list.

    Every ``select_next`` call advances the cursor exactly once. The advance is
    taken under a lock, so concurrent callers observe a strict round-robin.
    """

    def __init__(self, providers: Sequence[ChatProvider]) -> None:
        self._providers = tuple(providers)
        self._cursor = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._providers)

    @property
    def names(self) -> list[str]:
        return [provider.name for provider in self._providers]

    def select_next(self) -> ChatProvider | None:
        if not self._providers:
            return None
        with self._lock:
            provider = self._providers[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._providers)
        return provider
