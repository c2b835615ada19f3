from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from support_agent.domain.models import Role


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@runtime_checkable
class LLMPort(Protocol):
    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Single round-trip; returns the whole reply text."""
        ...

    def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Lazy sequence of reply fragments in generation order.

        Errors may surface on the first or any later iteration step. An error
        before the first fragment yields the fallback reply; a later one ends
        the stream with an error event.
        """
        ...
