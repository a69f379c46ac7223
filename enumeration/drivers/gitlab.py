"""
GitLab driver: the most starred projects, pages fetched in parallel
"""

import math
from typing import Any, Dict
from core.exceptions import PlatformCommunicationError
from enumeration.base import PlatformDriver
from enumeration.sinks.base import Sink
from enumeration.worker_pool import WorkerPool
import logging

logger = logging.getLogger(__name__)

GITLAB_PROJECTS_URL = "https://gitlab.com/api/v4/projects"


def project_attributes(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "url": item.get("web_url"),
        "clone_url": item.get("http_url_to_repo"),
        "stars": item.get("star_count"),
        "forks": item.get("forks_count"),
        "created_at": item.get("created_at"),
        "last_activity_at": item.get("last_activity_at"),
    }


class GitlabDriver(PlatformDriver):
    """
    Enumerate the ``options.take`` most starred public gitlab.com projects.

    Page numbers are known up front, so every page is an independent task
    on the worker pool.
    """

    name = "gitlab"
    platform_prefix = "gitlab"
    per_page = 100

    async def _enumerate(self, sink: Sink) -> None:
        take = self.options.take
        pages = list(range(1, math.ceil(take / self.per_page) + 1))
        pool = WorkerPool(self.options.workers, name=self.name)

        async with self.http() as fetcher:

            async def fetch_page(page: int) -> None:
                items = await fetcher.get_json(
                    GITLAB_PROJECTS_URL,
                    params={
                        "order_by": "star_count",
                        "sort": "desc",
                        "visibility": "public",
                        "simple": "true",
                        "per_page": self.per_page,
                        "page": page,
                    },
                )
                remaining = take - (page - 1) * self.per_page
                for item in (items or [])[:remaining]:
                    record = self.make_record(item.get("path_with_namespace"), project_attributes(item))
                    await self.emit(sink, record)

            pool_result = await pool.run(pages, fetch_page)

        if pool_result.failures and pool_result.completed == 0:
            error = pool_result.failures[0].error
            if isinstance(error, PlatformCommunicationError):
                raise error
        self.result.failed_tasks.extend(failure.describe() for failure in pool_result.failures)
