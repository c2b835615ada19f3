"""Fragment sources behind one lazy async-iterator interface.

A reply is either Synthetic (a fixed text replayed in slices with a small
delay between them) or Live (fragments forwarded from the generation
capability as they arrive). Downstream framing only ever sees
`AsyncIterator[str]` and cannot tell the two apart.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from typing import Any, Union


def slice_text(text: str, slice_size: int) -> Iterator[str]:
    if slice_size <= 0:
        raise ValueError("slice_size must be > 0")
    for start in range(0, len(text), slice_size):
        yield text[start : start + slice_size]


@dataclass
class SyntheticFragments:
    text: str
    slice_size: int = 15
    delay_s: float = 0.03

    def __aiter__(self) -> AsyncIterator[str]:
        return self._replay()

    async def _replay(self) -> AsyncIterator[str]:
        for i, piece in enumerate(slice_text(self.text, self.slice_size)):
            if i and self.delay_s > 0:
                await asyncio.sleep(self.delay_s)
            yield piece

    async def aclose(self) -> None:
        return None


@dataclass
class LiveFragments:
    """Forwards a capability stream in order, dropping empty fragments."""

    source: AsyncIterator[str]
    _closed: bool = field(default=False, init=False)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._forward()

    async def _forward(self) -> AsyncIterator[str]:
        try:
            async for piece in self.source:
                if piece:
                    yield piece
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        closer: Any = getattr(self.source, "aclose", None)
        if closer is not None:
            await closer()


SourcedFragments = Union[SyntheticFragments, LiveFragments]
