"""
PyPI drivers.

Two strategies over the same catalog:
- PypiBulkDriver lists every project from the simple index in one request
- PypiIncrementalDriver then fetches each project's metadata through the
  worker pool to resolve its source repository
"""

import re
from typing import Any, Dict, Iterable, List, Optional
from core.exceptions import PlatformCommunicationError
from enumeration.base import PlatformDriver
from enumeration.http import HttpFetcher
from enumeration.sinks.base import Sink
from enumeration.worker_pool import WorkerPool
import logging

logger = logging.getLogger(__name__)

PYPI_SIMPLE_URL = "https://pypi.org/simple/"
PYPI_JSON_URL = "https://pypi.org/pypi/{name}/json"
PYPI_PROJECT_URL = "https://pypi.org/project/{name}/"
SIMPLE_JSON_ACCEPT = "application/vnd.pypi.simple.v1+json"

GIT_HOST_PATTERN = re.compile(
    r"^https?://(www\.)?(github\.com|gitlab\.com|bitbucket\.org)/[^/\s]+/[^/\s#?]+",
    re.IGNORECASE,
)


def find_git_link(urls: Iterable[Optional[str]]) -> Optional[str]:
    """First URL pointing at a known git host, trimmed to owner/repo"""
    for url in urls:
        if not url:
            continue
        match = GIT_HOST_PATTERN.match(url.strip())
        if match:
            link = match.group(0).rstrip("/")
            return link[:-4] if link.endswith(".git") else link
    return None


async def list_projects(fetcher: HttpFetcher) -> List[str]:
    data = await fetcher.get_json(PYPI_SIMPLE_URL, headers={"Accept": SIMPLE_JSON_ACCEPT})
    projects = [project.get("name") for project in data.get("projects") or []]
    logger.info(f"PyPI simple index lists {len(projects)} projects")
    return [name for name in projects if name]


class PypiBulkDriver(PlatformDriver):
    """One request for the whole project list; names and project URLs only"""

    name = "pypi"
    platform_prefix = "pypi"

    async def _enumerate(self, sink: Sink) -> None:
        async with self.http() as fetcher:
            projects = await list_projects(fetcher)
        for name in projects:
            record = self.make_record(name, {"url": PYPI_PROJECT_URL.format(name=name)})
            await self.emit(sink, record)


def project_attributes(name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    info = data.get("info") or {}
    project_urls = info.get("project_urls") or {}
    return {
        "url": info.get("project_url") or PYPI_PROJECT_URL.format(name=name),
        "version": info.get("version"),
        "summary": info.get("summary"),
        "homepage": info.get("home_page") or None,
        "git_link": find_git_link(list(project_urls.values()) + [info.get("home_page")]),
    }


class PypiIncrementalDriver(PlatformDriver):
    """
    Per-project metadata, fetched concurrently.

    A project that fails to load is reported as a failed task; the other
    projects are still written.
    """

    name = "pypi_slow"
    platform_prefix = "pypi"

    def __init__(self, *args, projects: Optional[List[str]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.projects = projects

    async def _enumerate(self, sink: Sink) -> None:
        pool = WorkerPool(self.options.workers, name=self.name)

        async with self.http() as fetcher:
            projects = self.projects if self.projects is not None else await list_projects(fetcher)

            async def fetch_project(name: str) -> None:
                data = await fetcher.get_json(PYPI_JSON_URL.format(name=name))
                record = self.make_record(name, project_attributes(name, data))
                await self.emit(sink, record)

            pool_result = await pool.run(projects, fetch_project)

        if pool_result.failures and pool_result.completed == 0:
            error = pool_result.failures[0].error
            if isinstance(error, PlatformCommunicationError):
                raise error
        self.result.failed_tasks.extend(failure.describe() for failure in pool_result.failures)
