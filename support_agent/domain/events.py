"""Protocol events carried on the chat stream.

Every exchange is: one EscalationEvent, zero or more ChunkEvent, then exactly
one DoneEvent or ErrorEvent. The JSON shape of each event is fixed:

    {"type": "escalation", "isEscalation": <bool>}
    {"type": "chunk", "content": <str>}
    {"type": "done"}
    {"type": "error", "message": <str>}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import ProtocolError


@dataclass(frozen=True)
class EscalationEvent:
    flag: bool


@dataclass(frozen=True)
class ChunkEvent:
    text: str


@dataclass(frozen=True)
class DoneEvent:
    pass


@dataclass(frozen=True)
class ErrorEvent:
    message: str


ProtocolEvent = Union[EscalationEvent, ChunkEvent, DoneEvent, ErrorEvent]


def event_to_payload(event: ProtocolEvent) -> dict[str, Any]:
    if isinstance(event, EscalationEvent):
        return {"type": "escalation", "isEscalation": event.flag}
    if isinstance(event, ChunkEvent):
        return {"type": "chunk", "content": event.text}
    if isinstance(event, DoneEvent):
        return {"type": "done"}
    if isinstance(event, ErrorEvent):
        return {"type": "error", "message": event.message}
    raise TypeError(f"not a protocol event: {event!r}")


def event_from_payload(payload: Any) -> ProtocolEvent:
    """Map a decoded JSON record back to its event; unknown shapes are protocol errors."""
    if not isinstance(payload, Mapping):
        raise ProtocolError(f"event payload must be an object, got {type(payload).__name__}")
    kind = payload.get("type")
    if kind == "escalation":
        flag = payload.get("isEscalation")
        if not isinstance(flag, bool):
            raise ProtocolError("escalation event without boolean 'isEscalation'")
        return EscalationEvent(flag=flag)
    if kind == "chunk":
        content = payload.get("content")
        if not isinstance(content, str):
            raise ProtocolError("chunk event without string 'content'")
        return ChunkEvent(text=content)
    if kind == "done":
        return DoneEvent()
    if kind == "error":
        return ErrorEvent(message=str(payload.get("message", "")))
    raise ProtocolError(f"unknown event type: {kind!r}")


# ---------- Wire framing ----------

FRAME_PREFIX = "data: "
FRAME_TERMINATOR = "\n\n"


def encode_frame(event: ProtocolEvent) -> bytes:
    """One event -> `data: <json>\\n\\n` (UTF-8, compact JSON)."""
    body = json.dumps(event_to_payload(event), ensure_ascii=False, separators=(",", ":"))
    return f"{FRAME_PREFIX}{body}{FRAME_TERMINATOR}".encode()


def parse_frame_line(line: str) -> ProtocolEvent | None:
    """Parse one complete line; lines without the event prefix carry no event."""
    if not line.startswith(FRAME_PREFIX):
        return None
    raw = line[len(FRAME_PREFIX) :]
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as ex:
        raise ProtocolError(f"malformed event payload: {ex.msg}", frame=line) from ex
    return event_from_payload(payload)
