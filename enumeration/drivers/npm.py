"""
npm driver: walks the registry replication feed in key order
"""

import json
from typing import Optional
from enumeration.base import PlatformDriver
from enumeration.http import HttpFetcher
from enumeration.sinks.base import Sink
import logging

logger = logging.getLogger(__name__)

NPM_ALL_DOCS_URL = "https://replicate.npmjs.com/_all_docs"
NPM_PACKAGE_URL = "https://www.npmjs.com/package/{name}"


class NpmDriver(PlatformDriver):
    """
    Enumerate every package name in the npm registry.

    CouchDB pagination: each page starts at the last key of the previous
    one, so that key comes back as the first row and is skipped.
    """

    name = "npm"
    platform_prefix = "npm"

    def __init__(self, *args, page_size: int = 10000, **kwargs):
        super().__init__(*args, **kwargs)
        self.page_size = page_size

    async def _fetch_rows(self, fetcher: HttpFetcher, start_key: Optional[str]):
        params = {"limit": self.page_size + (1 if start_key else 0)}
        if start_key:
            params["startkey"] = json.dumps(start_key)
        data = await fetcher.get_json(NPM_ALL_DOCS_URL, params=params)
        rows = data.get("rows") or []
        if start_key and rows and rows[0].get("id") == start_key:
            rows = rows[1:]
        return rows

    async def _enumerate(self, sink: Sink) -> None:
        start_key = None
        pages = 0
        async with self.http() as fetcher:
            while True:
                rows = await self._fetch_rows(fetcher, start_key)
                pages += 1
                for row in rows:
                    name = row.get("id")
                    if not name or name.startswith("_design/"):
                        continue
                    record = self.make_record(name, {"url": NPM_PACKAGE_URL.format(name=name)})
                    await self.emit(sink, record)
                if len(rows) < self.page_size:
                    break
                start_key = rows[-1].get("id")
                logger.debug(f"npm page {pages} done, continuing after {start_key}")
