"""
GitHub driver: bisected repository search fanned out over a worker pool
"""

from typing import Any, Dict, Optional
from core.exceptions import PlatformCommunicationError
from enumeration.base import PlatformDriver
from enumeration.bisection import BisectionScheduler, SearchClient, SearchPage, SearchProbe
from enumeration.http import HttpFetcher
from enumeration.sinks.base import Sink
from enumeration.worker_pool import WorkerPool
from schemas.enumeration import EnumerationOptions, EnumerationRange
import logging

logger = logging.getLogger(__name__)

GITHUB_SEARCH_URL = "https://api.github.com/search/repositories"


class GithubSearchClient(SearchClient):
    """
    Repository search over the GitHub REST API.

    Results are sorted by stars, descending, so the first probe item carries
    the highest star count of the range and pages come back in a stable
    order.
    """

    result_cap = 1000
    per_page = 100

    def __init__(self, fetcher: HttpFetcher):
        self.fetcher = fetcher

    async def probe(self, query: str) -> SearchProbe:
        data = await self.fetcher.get_json(
            GITHUB_SEARCH_URL,
            params={"q": query, "sort": "stars", "order": "desc", "per_page": 1},
        )
        items = data.get("items") or []
        max_stars = items[0].get("stargazers_count") if items else None
        return SearchProbe(total_count=int(data.get("total_count", 0)), max_stars=max_stars)

    async def fetch_page(self, query: str, page: int) -> SearchPage:
        data = await self.fetcher.get_json(
            GITHUB_SEARCH_URL,
            params={
                "q": query,
                "sort": "stars",
                "order": "desc",
                "per_page": self.per_page,
                "page": page,
            },
        )
        items = data.get("items") or []
        total = int(data.get("total_count", 0))
        reachable = min(total, self.result_cap)
        has_next = bool(items) and page * self.per_page < reachable
        return SearchPage(items=items, total_count=total, has_next=has_next)


def repository_attributes(item: Dict[str, Any]) -> Dict[str, Any]:
    owner = item.get("owner") or {}
    return {
        "url": item.get("html_url"),
        "clone_url": item.get("clone_url"),
        "stars": item.get("stargazers_count"),
        "forks": item.get("forks_count"),
        "language": item.get("language"),
        "owner": owner.get("login"),
        "created_at": item.get("created_at"),
    }


class GithubDriver(PlatformDriver):
    """
    Enumerate every public repository matching ``options.query`` with at
    least ``options.min_stars`` stars created between the option dates.

    The bisection scheduler plans ranges under the search cap; the worker
    pool pages through each range, keeping page order within a range.
    """

    name = "github"
    platform_prefix = "github"
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    def __init__(
        self,
        options: Optional[EnumerationOptions] = None,
        fetcher: Optional[HttpFetcher] = None,
        token: Optional[str] = None,
        client: Optional[SearchClient] = None,
    ):
        super().__init__(options=options, fetcher=fetcher, token=token)
        self.client = client
        self.scheduler: Optional[BisectionScheduler] = None

    async def _fetch_range(self, client: SearchClient, sink: Sink, rng: EnumerationRange) -> None:
        query = rng.to_query(self.options.query)
        cap = min(self.options.result_cap, client.result_cap)
        fetched = 0
        page = 1
        while fetched < cap:
            result = await client.fetch_page(query, page)
            for item in result.items[: cap - fetched]:
                record = self.make_record(item.get("full_name"), repository_attributes(item))
                await self.emit(sink, record)
            fetched += len(result.items)
            if not result.has_next:
                break
            page += 1
        logger.debug(f"Fetched {fetched} repositories for {rng.describe()} ({page} pages)")

    async def _run(self, client: SearchClient, sink: Sink) -> None:
        self.scheduler = BisectionScheduler(client, self.options)
        pool = WorkerPool(self.options.workers, name=self.name)

        async def handler(rng: EnumerationRange) -> None:
            await self._fetch_range(client, sink, rng)

        pool_result = await pool.run(self.scheduler.plan(), handler)

        stats = self.scheduler.stats
        if stats.probes == 0 and stats.failed:
            # Not a single range could be probed: the platform is unreachable
            error = stats.failed[0].error
            if isinstance(error, PlatformCommunicationError):
                raise error

        self.result.failed_tasks.extend(issue.describe() for issue in stats.failed)
        self.result.failed_tasks.extend(failure.describe() for failure in pool_result.failures)
        self.result.truncated_ranges.extend(issue.describe() for issue in stats.truncated)

    async def _enumerate(self, sink: Sink) -> None:
        if self.client is not None:
            await self._run(self.client, sink)
            return
        async with self.http() as fetcher:
            await self._run(GithubSearchClient(fetcher), sink)
