"""
Abstract base class for platform drivers
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional
from pydantic import ValidationError
from core.exceptions import SinkWriteError
from enumeration.http import HttpFetcher
from enumeration.sinks.base import Sink
from schemas.enumeration import EnumerationOptions
from schemas.record import Record
import logging

logger = logging.getLogger(__name__)


@dataclass
class EnumerationResult:
    """Outcome of one platform enumeration"""
    platform: str
    platform_prefix: str
    records_written: int = 0
    records_failed: int = 0
    records_skipped: int = 0
    failed_tasks: List[Dict[str, Any]] = field(default_factory=list)
    truncated_ranges: List[Dict[str, Any]] = field(default_factory=list)
    write_errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.records_failed or self.failed_tasks:
            return "partial_success"
        return "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "platform_prefix": self.platform_prefix,
            "status": self.status,
            "records_written": self.records_written,
            "records_failed": self.records_failed,
            "records_skipped": self.records_skipped,
            "failed_tasks": self.failed_tasks,
            "truncated_ranges": self.truncated_ranges,
            "write_errors": self.write_errors,
        }


class PlatformDriver(ABC):
    """
    Produces Records for one source platform.

    Subclasses implement ``_enumerate`` and push every record through
    ``emit``. The set of records produced is deterministic for fixed
    options; arrival order is not.

    Raises from ``enumerate``:
        PlatformCommunicationError: the platform could not be enumerated.
        Records already written stay written.
    """

    name: str = "unknown"
    platform_prefix: str = "unknown"
    headers: Dict[str, str] = {}

    def __init__(
        self,
        options: Optional[EnumerationOptions] = None,
        fetcher: Optional[HttpFetcher] = None,
        token: Optional[str] = None,
    ):
        self.options = options or EnumerationOptions()
        self.fetcher = fetcher
        self.token = token
        self.result = EnumerationResult(platform=self.name, platform_prefix=self.platform_prefix)

    @abstractmethod
    async def _enumerate(self, sink: Sink) -> None:
        pass

    async def enumerate(self, sink: Sink) -> EnumerationResult:
        """Enumerate the platform into ``sink`` and return the run statistics"""
        self.result = EnumerationResult(platform=self.name, platform_prefix=self.platform_prefix)
        logger.info(f"Starting enumeration of {self.name}")

        await self._enumerate(sink)

        logger.info(
            f"Enumeration of {self.name} finished: {self.result.status} - "
            f"Written: {self.result.records_written}, Failed: {self.result.records_failed}, "
            f"Failed tasks: {len(self.result.failed_tasks)}"
        )
        return self.result

    @asynccontextmanager
    async def http(self) -> AsyncIterator[HttpFetcher]:
        """The injected fetcher, or a fresh one for the duration of the run"""
        if self.fetcher is not None:
            yield self.fetcher
            return
        async with HttpFetcher(self.name, token=self.token, headers=self.headers) as fetcher:
            yield fetcher

    def make_record(self, identifier: Any, attributes: Dict[str, Any]) -> Optional[Record]:
        """Build a Record, or None (counted as skipped) if the raw item is unusable"""
        try:
            return Record(
                platform_prefix=self.platform_prefix,
                identifier=str(identifier) if identifier is not None else "",
                attributes=attributes,
            )
        except ValidationError as e:
            self.result.records_skipped += 1
            logger.warning(f"Skipping malformed {self.name} item {identifier!r}: {e}")
            return None

    async def emit(self, sink: Sink, record: Optional[Record]) -> None:
        """Write one record; a failed write is reported and enumeration goes on"""
        if record is None:
            return
        try:
            await sink.write(record)
            self.result.records_written += 1
        except SinkWriteError as e:
            self.result.records_failed += 1
            self.result.write_errors.append(e.to_dict())
            logger.error(
                f"Failed to write {record.platform_prefix}/{record.identifier}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
