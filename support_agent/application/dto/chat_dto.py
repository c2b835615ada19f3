# support_agent/application/dto/chat_dto.py
from __future__ import annotations

from collections.abc import AsyncIterable, Sequence
from dataclasses import dataclass

from support_agent.domain.errors import ValidationError
from support_agent.domain.models import Message


@dataclass(frozen=True)
class ChatRequest:
    """
    DTO for one chat turn.

    - messages:    prior conversation, chronological (the new message excluded)
    - new_message: the user's new free-text message (non-empty)
    """

    messages: Sequence[Message]
    new_message: str

    def validate(self) -> None:
        if self.messages is None:
            raise ValidationError("Missing required fields: messages and newMessage")
        if not self.new_message or not self.new_message.strip():
            raise ValidationError("Missing required fields: messages and newMessage")


@dataclass(frozen=True)
class GeneratedResponse:
    """A reply whose text is still being produced; the escalation flag is already final."""

    fragments: AsyncIterable[str]
    is_escalation: bool
