"""
Pytest configuration and fixtures
"""

import os
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from core.exceptions import SinkWriteError
from enumeration.bisection import SearchClient, SearchPage, SearchProbe
from enumeration.sinks.base import Sink
from models.base import Base
from schemas.record import Record

# Test database URL (a per-test SQLite file unless a real database is given)
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

_CREATED = re.compile(r"created:(\d{4}-\d{2}-\d{2})\.\.(\d{4}-\d{2}-\d{2})")
_STARS_OPEN = re.compile(r"stars:>=(\d+)")
_STARS_CLOSED = re.compile(r"stars:(\d+)\.\.(\d+)")


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create test database engine"""
    database_url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"
    engine = create_async_engine(
        database_url,
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


class MemorySink(Sink):
    """Keeps every written record in order; optionally fails chosen identifiers"""

    kind = "memory"

    def __init__(self, fail_on: Tuple[str, ...] = ()):
        self.records: List[Record] = []
        self.fail_on = set(fail_on)
        self.closed = False

    async def write(self, record: Record) -> None:
        if record.identifier in self.fail_on:
            raise SinkWriteError("Injected write failure", context={"identifier": record.identifier})
        self.records.append(record)

    async def close(self) -> None:
        self.closed = True

    @property
    def identifiers(self) -> List[str]:
        return [record.identifier for record in self.records]


class SyntheticSearchClient(SearchClient):
    """
    In-memory capped repository search.

    Understands the ``created:`` and ``stars:`` qualifiers rendered by
    EnumerationRange.to_query and records every probe it answers.
    """

    def __init__(self, repos: List[Dict[str, Any]], cap: int, per_page: int = 10):
        self.repos = repos
        self.result_cap = cap
        self.per_page = per_page
        self.probes: List[Tuple[str, int]] = []
        self.page_requests: List[Tuple[str, int]] = []

    def matches(self, query: str) -> List[Dict[str, Any]]:
        created = _CREATED.search(query)
        start, end = date.fromisoformat(created.group(1)), date.fromisoformat(created.group(2))
        closed = _STARS_CLOSED.search(query)
        if closed:
            low, high = int(closed.group(1)), int(closed.group(2))
        else:
            low, high = int(_STARS_OPEN.search(query).group(1)), None
        found = [
            repo for repo in self.repos
            if start <= repo["created"] <= end
            and repo["stargazers_count"] >= low
            and (high is None or repo["stargazers_count"] <= high)
        ]
        return sorted(found, key=lambda repo: (-repo["stargazers_count"], repo["full_name"]))

    async def probe(self, query: str) -> SearchProbe:
        found = self.matches(query)
        self.probes.append((query, len(found)))
        return SearchProbe(
            total_count=len(found),
            max_stars=found[0]["stargazers_count"] if found else None,
        )

    async def fetch_page(self, query: str, page: int) -> SearchPage:
        self.page_requests.append((query, page))
        found = self.matches(query)
        start = (page - 1) * self.per_page
        items = [
            {
                "full_name": repo["full_name"],
                "stargazers_count": repo["stargazers_count"],
                "created_at": repo["created"].isoformat(),
                "html_url": f"https://github.com/{repo['full_name']}",
            }
            for repo in found[start:start + self.per_page]
        ]
        reachable = min(len(found), self.result_cap)
        return SearchPage(items=items, total_count=len(found), has_next=bool(items) and page * self.per_page < reachable)


def make_catalog(count: int, start: date, days: int, min_stars: int = 0, star_span: int = 200) -> List[Dict[str, Any]]:
    """
    Deterministic synthetic catalog.

    Creation dates cycle over ``days`` and star counts step by 7 over
    ``star_span``, so no (day, stars) cell holds two repositories while
    ``count`` stays below lcm(days, star_span).
    """
    return [
        {
            "full_name": f"owner{i % 17}/repo-{i}",
            "created": start + timedelta(days=i % days),
            "stargazers_count": min_stars + (i * 7) % star_span,
        }
        for i in range(count)
    ]


class FakeFetcher:
    """
    Stand-in for HttpFetcher: answers get_json from a routing function.

    ``route(url, params)`` returns the decoded payload or raises.
    """

    def __init__(self, route):
        self.route = route
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        self.calls.append((url, dict(params) if params else None))
        return self.route(url, params or {})


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def memory_sink_cls():
    return MemorySink


@pytest.fixture
def synthetic_client_cls():
    return SyntheticSearchClient


@pytest.fixture
def catalog_factory():
    return make_catalog


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def debian_packages_text():
    """A small control-format Packages index"""
    return (
        "Package: libc6\n"
        "Version: 2.36-9\n"
        "Description: GNU C Library: Shared libraries\n"
        " Contains the standard libraries used by nearly all programs.\n"
        "Homepage: https://www.gnu.org/software/libc/libc.html\n"
        "\n"
        "Package: zlib1g\n"
        "Version: 1:1.2.13.dfsg-1\n"
        "Depends: libc6 (>= 2.14)\n"
        "Description: compression library - runtime\n"
        "Homepage: https://zlib.net/\n"
        "\n"
        "Package: curl\n"
        "Version: 7.88.1-10\n"
        "Depends: libcurl4 (= 7.88.1-10), libc6 (>= 2.34), zlib1g (>= 1:1.1.4)\n"
        "Description: command line tool for transferring data with URL syntax\n"
        "Homepage: https://curl.se/\n"
        "\n"
        "Package: libcurl4\n"
        "Version: 7.88.1-10\n"
        "Pre-Depends: libc6 (>= 2.34)\n"
        "Depends: zlib1g | zlib-ng, libc6:any\n"
        "Description: easy-to-use client-side URL transfer library\n"
    )
