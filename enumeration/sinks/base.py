"""
Abstract base class for record sinks
"""

from abc import ABC, abstractmethod
from schemas.record import Record


class Sink(ABC):
    """
    Destination for enumerated records.

    ``write`` either commits the record or raises SinkWriteError; a sink
    never drops a record silently. Sinks are async context managers so the
    runner can release file handles and connections on every exit path.
    """

    kind: str = "unknown"

    @abstractmethod
    async def write(self, record: Record) -> None:
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "Sink":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
