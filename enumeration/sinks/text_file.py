"""
Append records to a flat file, one JSON line each (no dedup)
"""

import asyncio
from pathlib import Path
from typing import Optional, TextIO, Union
from core.exceptions import SinkWriteError
from enumeration.sinks.base import Sink
from schemas.record import Record
import logging

logger = logging.getLogger(__name__)


class TextFileSink(Sink):
    """
    Appends to ``path``, creating parent directories on first write.

    Writes from concurrent worker tasks are serialized by a lock so lines
    never interleave.
    """

    kind = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._handle: Optional[TextIO] = None
        self._lock = asyncio.Lock()

    def _open(self) -> TextIO:
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8")
            logger.info(f"Appending records to {self.path}")
        return self._handle

    async def write(self, record: Record) -> None:
        line = record.to_json_line()
        async with self._lock:
            try:
                handle = self._open()
                handle.write(line + "\n")
                handle.flush()
            except OSError as e:
                raise SinkWriteError(
                    f"Failed to append record to {self.path}",
                    context={
                        "sink": self.kind,
                        "path": str(self.path),
                        "platform_prefix": record.platform_prefix,
                        "identifier": record.identifier
                    },
                    original_exception=e
                )

    async def close(self) -> None:
        async with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None
