"""
Bisection scheduler for result-capped search APIs.

A search API such as GitHub's returns at most ``result_cap`` items per query
no matter how many match. The scheduler narrows the (creation date x star
count) space until every range it hands out matches fewer items than the cap:

1. Probe a range with one cheap query (total count + highest star count).
2. No matches: drop it. Fewer than the cap: yield it for full execution.
3. Otherwise split: bisect the dates while the range spans more than one
   day, then bisect the stars (upper bucket widened downwards by the
   overlap). Duplicates created by the overlap are left to the sink.

Ranges that cannot be split any further (one day, one star value) are
executed best-effort and reported as truncated.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from core.exceptions import IncompleteEnumerationError, PlatformCommunicationError
from schemas.enumeration import EnumerationOptions, EnumerationRange
import logging

logger = logging.getLogger(__name__)


@dataclass
class SearchProbe:
    """Result of a count-only query"""
    total_count: int
    max_stars: Optional[int] = None  # Highest star count on the first page, sorted by stars desc


@dataclass
class SearchPage:
    """One page of search results, in the order the platform returned them"""
    items: List[Dict[str, Any]]
    total_count: int
    has_next: bool


class SearchClient(ABC):
    """Contract a capped search API must satisfy to be bisected"""

    result_cap: int = 1000

    @abstractmethod
    async def probe(self, query: str) -> SearchProbe:
        pass

    @abstractmethod
    async def fetch_page(self, query: str, page: int) -> SearchPage:
        pass


@dataclass
class RangeIssue:
    """A range that failed to probe, or could not be brought under the cap"""
    range: EnumerationRange
    error: Optional[Exception] = None
    count: Optional[int] = None

    def describe(self) -> Dict[str, Any]:
        info = self.range.describe()
        if self.count is not None:
            info["count"] = self.count
        if self.error is not None:
            info["error_type"] = type(self.error).__name__
            info["error_message"] = str(self.error)
        return info


@dataclass
class BisectionStats:
    probes: int = 0
    date_splits: int = 0
    star_splits: int = 0
    executable: int = 0
    empty: int = 0
    failed: List[RangeIssue] = field(default_factory=list)
    truncated: List[RangeIssue] = field(default_factory=list)


class BisectionScheduler:
    """
    Plan capped-search execution ranges.

    ``plan()`` is an async generator: feed it straight into a WorkerPool so
    probing pauses while all workers are busy.
    """

    def __init__(self, client: SearchClient, options: EnumerationOptions):
        self.client = client
        self.options = options
        self.cap = min(options.result_cap, client.result_cap)
        self.stats = BisectionStats()

    def _split(
        self, rng: EnumerationRange, observed_max: Optional[int]
    ) -> Optional[Tuple[EnumerationRange, EnumerationRange]]:
        """Children of an over-cap range, or None when it is indivisible"""
        if not rng.is_single_day:
            self.stats.date_splits += 1
            return rng.split_dates()

        high = rng.max_stars if rng.max_stars is not None else observed_max
        if high is not None and high > rng.min_stars:
            self.stats.star_splits += 1
            return rng.split_stars(high)

        return None

    def _report_truncated(self, rng: EnumerationRange, count: int) -> None:
        at_boundary = rng.min_stars <= self.options.min_stars
        if self.options.require_min_stars and at_boundary:
            error = IncompleteEnumerationError(
                "Cannot bring boundary range under the result cap",
                context={"range": rng.describe(), "count": count, "cap": self.cap}
            )
            self.stats.failed.append(RangeIssue(range=rng, error=error, count=count))
            logger.error(str(error), extra={"error_context": error.to_dict()})
        else:
            self.stats.truncated.append(RangeIssue(range=rng, count=count))
            logger.warning(
                f"Range {rng.describe()} matches {count} results but cannot be split; "
                f"only the first {self.cap} will be fetched"
            )

    async def plan(self, root: Optional[EnumerationRange] = None) -> AsyncIterator[EnumerationRange]:
        """
        Yield ranges ready for direct execution.

        Depth-first over an explicit stack, lower halves first. A probe
        failure records the range in ``stats.failed`` and planning goes on.
        """
        stack: List[EnumerationRange] = [root or self.options.root_range()]

        while stack:
            rng = stack.pop()
            query = rng.to_query(self.options.query)

            try:
                probe = await self.client.probe(query)
            except PlatformCommunicationError as e:
                self.stats.failed.append(RangeIssue(range=rng, error=e))
                logger.error(
                    f"Probe failed for {rng.describe()}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                continue
            self.stats.probes += 1

            if probe.total_count == 0:
                self.stats.empty += 1
                continue

            if probe.total_count < self.cap:
                self.stats.executable += 1
                logger.debug(f"Executing {rng.describe()} ({probe.total_count} results)")
                yield rng
                continue

            children = self._split(rng, probe.max_stars)
            if children is not None:
                low, high = children
                logger.debug(
                    f"Splitting {rng.describe()} ({probe.total_count} >= {self.cap}) into "
                    f"{low.describe()} and {high.describe()}"
                )
                stack.append(high)
                stack.append(low)
                continue

            if probe.total_count > self.cap:
                self._report_truncated(rng, probe.total_count)
            self.stats.executable += 1
            yield rng

        logger.info(
            f"Bisection planning done: {self.stats.probes} probes, "
            f"{self.stats.date_splits} date splits, {self.stats.star_splits} star splits, "
            f"{self.stats.executable} executable ranges, {len(self.stats.failed)} failed, "
            f"{len(self.stats.truncated)} truncated"
        )
