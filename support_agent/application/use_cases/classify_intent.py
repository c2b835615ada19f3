from __future__ import annotations

from support_agent.application.ports.llm_port import ChatMessage, LLMPort
from support_agent.config.logging import get_logger
from support_agent.domain.models import Intent
from support_agent.domain.services.intent import parse_intent
from support_agent.domain.services.prompts import CLASSIFIER_INSTRUCTION

logger = get_logger(__name__)


class IntentClassifier:
    """One round-trip to the LLM; capability errors propagate to the caller."""

    def __init__(self, llm: LLMPort) -> None:
        self.llm = llm

    async def classify(self, query: str) -> Intent:
        raw = await self.llm.complete(
            [
                ChatMessage(role="system", content=CLASSIFIER_INSTRUCTION),
                ChatMessage(role="user", content=query),
            ]
        )
        intent = parse_intent(raw)
        logger.debug(f"Classified query as {intent.value} (raw output: {raw!r})")
        return intent
