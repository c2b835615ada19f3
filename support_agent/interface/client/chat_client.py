"""HTTP client for the streaming chat endpoint."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from support_agent.config.logging import get_logger
from support_agent.domain.events import ChunkEvent, DoneEvent, ProtocolEvent
from support_agent.domain.models import Message
from support_agent.domain.services.prompts import FALLBACK_MESSAGE
from support_agent.interface.client.stream_decoder import StreamedReply, decode_stream

logger = get_logger(__name__)


def message_to_payload(message: Message) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "createdAt": message.created_at.isoformat(),
    }
    if message.is_escalation is not None:
        payload["isEscalation"] = message.is_escalation
    return payload


async def _fallback_events() -> AsyncIterator[ProtocolEvent]:
    yield ChunkEvent(text=FALLBACK_MESSAGE)
    yield DoneEvent()


def fallback_reply() -> StreamedReply:
    return StreamedReply(False, _fallback_events())


async def _response_bytes(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for data in response.aiter_bytes():
            yield data
    finally:
        await response.aclose()


class ChatClient:
    """
    Posts one chat turn and exposes the reply as it streams in.

    Failures before streaming starts (connection refused, non-200 status)
    degrade to the fallback reply with is_escalation=False. Once the stream
    is open, protocol failures surface from the fragment iteration.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout: float | None = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def send_message(self, history: Sequence[Message], new_message: str) -> StreamedReply:
        body = {
            "messages": [message_to_payload(m) for m in history],
            "newMessage": new_message,
        }
        request = self._http.build_request("POST", "/api/chat", json=body)
        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as ex:
            logger.warning(f"Chat request failed: {ex}")
            return fallback_reply()

        if response.status_code != 200:
            await response.aread()
            await response.aclose()
            logger.warning(f"Chat request rejected: HTTP {response.status_code} {response.text}")
            return fallback_reply()

        return await decode_stream(_response_bytes(response))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()
