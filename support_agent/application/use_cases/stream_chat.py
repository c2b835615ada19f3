"""Server-side stream framer.

Turns one GeneratedResponse into the ordered protocol events
(escalation, chunk*, done|error) and their wire frames.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from support_agent.application.dto.chat_dto import ChatRequest, GeneratedResponse
from support_agent.application.ports.byte_sink_port import ByteSinkPort
from support_agent.application.ports.telemetry_port import NullTelemetry, TelemetryPort
from support_agent.application.use_cases.generate_response import ResponseGenerator
from support_agent.config.logging import get_logger
from support_agent.domain.errors import TransportError
from support_agent.domain.events import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    EscalationEvent,
    ProtocolEvent,
    encode_frame,
)

logger = get_logger(__name__)

STREAM_ERROR_MESSAGE = "Stream error occurred"


class ChatStreamFramer:
    """
    Application use case: validate → generate → frame.

    open() does everything that may still fail with a status-code style error
    (validation) and resolves the escalation flag; once the first frame is
    produced, failures are reported in-band as a single error event.
    """

    def __init__(self, generator: ResponseGenerator, telemetry: TelemetryPort | None = None):
        self.generator = generator
        self.telemetry = telemetry or NullTelemetry()

    async def open(self, req: ChatRequest) -> GeneratedResponse:
        req.validate()
        return await self.generator.generate(req.messages, req.new_message)

    async def events(self, response: GeneratedResponse) -> AsyncIterator[ProtocolEvent]:
        yield EscalationEvent(flag=response.is_escalation)
        n_fragments = 0
        try:
            async for piece in response.fragments:
                n_fragments += 1
                yield ChunkEvent(text=piece)
        except Exception:  # noqa: BLE001
            logger.error("Chat stream failed after streaming started", exc_info=True)
            yield ErrorEvent(message=STREAM_ERROR_MESSAGE)
            return
        finally:
            await _aclose(response.fragments)
            self.telemetry.observe("chat.fragments", float(n_fragments))
        yield DoneEvent()

    async def frames(self, response: GeneratedResponse) -> AsyncIterator[bytes]:
        events = self.events(response)
        try:
            async for event in events:
                yield encode_frame(event)
        finally:
            await events.aclose()

    async def write_to(self, sink: ByteSinkPort, response: GeneratedResponse) -> bool:
        """Write every frame to sink in order, then close it.

        Returns False if the sink failed; the sink is still closed, best-effort.
        """
        frames = self.frames(response)
        try:
            async for frame in frames:
                await sink.write(frame)
            await sink.close()
            return True
        except (TransportError, OSError) as ex:
            logger.warning(f"Output sink failed; abandoning stream: {ex}")
            await _close_quietly(sink)
            return False
        finally:
            await frames.aclose()


async def _close_quietly(sink: ByteSinkPort) -> None:
    try:
        await sink.close()
    except (TransportError, OSError):
        logger.debug("Output sink failed to close", exc_info=True)


async def _aclose(fragments: Any) -> None:
    closer = getattr(fragments, "aclose", None)
    if closer is not None:
        await closer()
