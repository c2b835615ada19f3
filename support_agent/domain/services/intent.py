# support_agent/domain/services/intent.py
# Pure domain service: maps raw classifier output to exactly one Intent.
from __future__ import annotations

from support_agent.domain.models import Intent

# Checked in this order; the first category name contained in the output wins.
INTENT_PRIORITY: tuple[Intent, ...] = (Intent.ESCALATE, Intent.OFF_TOPIC)


def normalize_output(raw: str) -> str:
    return (raw or "").strip().upper()


def parse_intent(raw: str) -> Intent:
    """
    Substring containment, not exact match: noisy output such as
    "ESCALATE OFF_TOPIC" or "Category: OFF_TOPIC." still resolves.

    Unrecognised output defaults to ANSWER.
    """
    text = normalize_output(raw)
    for intent in INTENT_PRIORITY:
        if intent.value in text:
            return intent
    return Intent.ANSWER
