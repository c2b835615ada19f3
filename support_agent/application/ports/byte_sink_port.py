from typing import Protocol


class ByteSinkPort(Protocol):
    """Writable output of one response stream (e.g. an HTTP body)."""

    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...
