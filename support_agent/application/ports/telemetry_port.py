"""Metrics port for the chat pipeline (intents, fallbacks, fragment and chunk counts)."""

from typing import Any, Protocol


class TelemetryPort(Protocol):
    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        """Count one occurrence, e.g. `chat.intent` tagged with the intent."""
        ...

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Record one sample, e.g. fragments per reply or chunks per index build."""
        ...


class NullTelemetry:
    """Discards every sample; used when TELEMETRY_ENABLED is false and in tests."""

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        return None

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        return None
