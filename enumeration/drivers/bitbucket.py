"""
BitBucket driver: follows the repositories listing cursor sequentially
"""

from typing import Any, Dict
from enumeration.base import PlatformDriver
from enumeration.sinks.base import Sink
import logging

logger = logging.getLogger(__name__)

BITBUCKET_REPOSITORIES_URL = "https://api.bitbucket.org/2.0/repositories"


def repository_attributes(item: Dict[str, Any]) -> Dict[str, Any]:
    links = item.get("links") or {}
    clone_url = None
    for clone in links.get("clone") or []:
        if clone.get("name") == "https":
            clone_url = clone.get("href")
    return {
        "url": (links.get("html") or {}).get("href"),
        "clone_url": clone_url,
        "language": item.get("language") or None,
        "created_at": item.get("created_on"),
        "updated_at": item.get("updated_on"),
    }


class BitbucketDriver(PlatformDriver):
    """
    Enumerate the first ``options.take`` public repositories.

    BitBucket pages through an opaque ``next`` link, so pages cannot be
    fetched in parallel.
    """

    name = "bitbucket"
    platform_prefix = "bitbucket"
    page_length = 100

    async def _enumerate(self, sink: Sink) -> None:
        take = self.options.take
        url = BITBUCKET_REPOSITORIES_URL
        params = {"pagelen": self.page_length}
        seen = 0

        async with self.http() as fetcher:
            while url and seen < take:
                data = await fetcher.get_json(url, params=params)
                for item in (data.get("values") or [])[: take - seen]:
                    record = self.make_record(item.get("full_name"), repository_attributes(item))
                    await self.emit(sink, record)
                    seen += 1
                url = data.get("next")
                params = None  # The next link already carries the query
                logger.debug(f"BitBucket progress: {seen}/{take}")
