"""Client-side decoding of the chat event stream.

Bytes arrive in arbitrary pieces that do not line up with frames. The
FrameAccumulator owns the carry-over logic; decode_stream turns a byte source
into a StreamedReply (escalation flag + lazy fragments).
"""

from __future__ import annotations

import codecs
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any

from support_agent.config.logging import get_logger
from support_agent.domain.errors import ProtocolError
from support_agent.domain.events import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    EscalationEvent,
    ProtocolEvent,
    parse_frame_line,
)

logger = get_logger(__name__)


class FrameAccumulator:
    """Buffers raw bytes and emits each event once its line is complete.

    A multi-byte UTF-8 character split across two reads is held back by the
    incremental decoder until its remaining bytes arrive. A malformed line
    does not discard the events before it: feed() returns those, and the
    error is raised by the next call to raise_pending().
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._buffer = ""
        self._error: ProtocolError | None = None

    @property
    def pending(self) -> str:
        return self._buffer

    def raise_pending(self) -> None:
        if self._error is not None:
            raise self._error

    def feed(self, data: bytes) -> list[ProtocolEvent]:
        self.raise_pending()
        self._buffer += self._decoder.decode(data)
        lines = self._buffer.split("\n")
        # The last segment may be an incomplete line; keep it for the next read.
        self._buffer = lines.pop()
        return self._parse(lines)

    def flush(self) -> list[ProtocolEvent]:
        """End of input: parse whatever is left as a final line."""
        self.raise_pending()
        self._buffer += self._decoder.decode(b"", final=True)
        rest, self._buffer = self._buffer, ""
        return self._parse([rest]) if rest else []

    def _parse(self, lines: Iterable[str]) -> list[ProtocolEvent]:
        events: list[ProtocolEvent] = []
        for line in lines:
            try:
                event = parse_frame_line(line.rstrip("\r"))
            except ProtocolError as err:
                self._error = err
                break
            if event is not None:
                events.append(event)
        return events


async def _aclose(obj: Any) -> None:
    closer = getattr(obj, "aclose", None)
    if closer is not None:
        await closer()


async def iter_events(source: AsyncIterable[bytes]) -> AsyncIterator[ProtocolEvent]:
    """Events in stream order; the source is closed however iteration ends."""
    iterator = source.__aiter__()
    accumulator = FrameAccumulator()
    try:
        async for data in iterator:
            for event in accumulator.feed(data):
                yield event
            accumulator.raise_pending()
        for event in accumulator.flush():
            yield event
        accumulator.raise_pending()
    finally:
        await _aclose(iterator)


class StreamedReply:
    """An assistant reply being received: final escalation flag + lazy fragments.

    Iterating `fragments` yields chunk texts until the done event. An error
    event or malformed frame raises ProtocolError from the iteration. Call
    aclose() (or use `async with`) to stop early and release the source.
    """

    def __init__(
        self,
        is_escalation: bool,
        events: AsyncIterator[ProtocolEvent],
        buffered: Iterable[ProtocolEvent] = (),
    ) -> None:
        self.is_escalation = is_escalation
        self._events = events
        self._buffered: deque[ProtocolEvent] = deque(buffered)
        self.fragments: AsyncIterator[str] = self._fragments()

    async def _next_event(self) -> ProtocolEvent | None:
        if self._buffered:
            return self._buffered.popleft()
        try:
            return await self._events.__anext__()
        except StopAsyncIteration:
            return None

    async def _fragments(self) -> AsyncIterator[str]:
        try:
            while True:
                event = await self._next_event()
                if event is None:
                    raise ProtocolError("stream ended before a done event")
                if isinstance(event, ChunkEvent):
                    yield event.text
                elif isinstance(event, DoneEvent):
                    return
                elif isinstance(event, ErrorEvent):
                    logger.debug(f"Server reported stream error: {event.message}")
                    raise ProtocolError(event.message or "stream error")
                # a repeated escalation event carries nothing new
        finally:
            await _aclose(self._events)

    async def text(self) -> str:
        """Drain the remaining fragments into one string."""
        return "".join([piece async for piece in self.fragments])

    async def aclose(self) -> None:
        await _aclose(self.fragments)
        await _aclose(self._events)

    async def __aenter__(self) -> StreamedReply:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()


async def decode_stream(source: AsyncIterable[bytes]) -> StreamedReply:
    """Read until the escalation flag is known and hand back the rest lazily.

    A stream whose first event is not an escalation event is treated as
    non-escalated; that event is kept for the fragment iteration.
    """
    events = iter_events(source)
    try:
        first = await events.__anext__()
    except StopAsyncIteration:
        return StreamedReply(False, events)
    except BaseException:
        await events.aclose()
        raise
    if isinstance(first, EscalationEvent):
        return StreamedReply(first.flag, events)
    return StreamedReply(False, events, buffered=[first])
