"""
Print records to standard output, one JSON line each (no dedup)
"""

import sys
from typing import Optional, TextIO
from core.exceptions import SinkWriteError
from enumeration.sinks.base import Sink
from schemas.record import Record


class StdOutSink(Sink):
    kind = "stdout"

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    async def write(self, record: Record) -> None:
        stream = self._stream or sys.stdout
        try:
            print(record.to_json_line(), file=stream, flush=True)
        except (OSError, ValueError) as e:
            raise SinkWriteError(
                "Failed to print record",
                context={
                    "sink": self.kind,
                    "platform_prefix": record.platform_prefix,
                    "identifier": record.identifier
                },
                original_exception=e
            )
