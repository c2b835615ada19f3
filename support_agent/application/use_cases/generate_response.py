# support_agent/application/use_cases/generate_response.py
from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass

from support_agent.application.dto.chat_dto import GeneratedResponse
from support_agent.application.fragments import LiveFragments, SourcedFragments, SyntheticFragments
from support_agent.application.ports.llm_port import ChatMessage, LLMPort
from support_agent.application.ports.telemetry_port import NullTelemetry, TelemetryPort
from support_agent.application.use_cases.classify_intent import IntentClassifier
from support_agent.application.use_cases.retrieve_context import Retriever
from support_agent.config.logging import get_logger
from support_agent.domain.models import Intent, Message
from support_agent.domain.services.prompts import (
    ESCALATION_MESSAGE,
    FALLBACK_MESSAGE,
    OFF_TOPIC_MESSAGE,
    answer_instruction,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class PacingParams:
    """Slice size and delay used to replay canned replies."""

    slice_size: int = 15
    delay_s: float = 0.03


def history_to_chat(history: Sequence[Message]) -> list[ChatMessage]:
    """Keep user/assistant turns in order; system messages never reach the model."""
    return [ChatMessage(role=m.role, content=m.content) for m in history if m.role != "system"]


class ResponseGenerator:
    """
    Application use case: classify → (retrieve) → generate.

    Fail-soft: a failure while classifying, retrieving, or before the answer
    stream turns the whole reply into the fallback message with
    is_escalation=False. A failure after the first answer fragment propagates
    so the framer can end the stream with an error event.
    """

    def __init__(
        self,
        llm: LLMPort,
        classifier: IntentClassifier,
        retriever: Retriever,
        pacing: PacingParams | None = None,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.llm = llm
        self.classifier = classifier
        self.retriever = retriever
        self.pacing = pacing or PacingParams()
        self.telemetry = telemetry or NullTelemetry()

    def _synthetic(self, text: str) -> SyntheticFragments:
        return SyntheticFragments(text, self.pacing.slice_size, self.pacing.delay_s)

    async def generate(self, history: Sequence[Message], query: str) -> GeneratedResponse:
        try:
            intent = await self.classifier.classify(query)
            self.telemetry.incr("chat.intent", {"intent": intent.value})

            if intent is Intent.ESCALATE:
                return GeneratedResponse(self._synthetic(ESCALATION_MESSAGE), is_escalation=True)
            if intent is Intent.OFF_TOPIC:
                return GeneratedResponse(self._synthetic(OFF_TOPIC_MESSAGE), is_escalation=False)

            fragments = await self._answer(history, query)
            return GeneratedResponse(self._guarded(fragments), is_escalation=False)
        except Exception:  # noqa: BLE001
            logger.warning("Generation failed; replying with fallback message", exc_info=True)
            self.telemetry.incr("chat.fallback", {"stage": "setup"})
            return GeneratedResponse(self._synthetic(FALLBACK_MESSAGE), is_escalation=False)

    async def _answer(self, history: Sequence[Message], query: str) -> SourcedFragments:
        context = await self.retriever.get_context(query)
        messages = [
            ChatMessage(role="system", content=answer_instruction(context)),
            *history_to_chat(history),
            ChatMessage(role="user", content=query),
        ]
        return LiveFragments(self.llm.stream(messages))

    async def _guarded(self, fragments: SourcedFragments) -> AsyncIterator[str]:
        # Before the first fragment any failure is still a fallback reply;
        # after it, the failure belongs to the framer (one error event).
        yielded = False
        try:
            async for piece in fragments:
                yielded = True
                yield piece
        except Exception:  # noqa: BLE001
            if yielded:
                raise
            logger.warning("Answer stream failed before output; replying with fallback", exc_info=True)
            self.telemetry.incr("chat.fallback", {"stage": "stream"})
            yield FALLBACK_MESSAGE
        finally:
            await fragments.aclose()
