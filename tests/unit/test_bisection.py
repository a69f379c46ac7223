"""
Unit tests for the bisection scheduler
"""

import pytest
from datetime import date
from core.exceptions import IncompleteEnumerationError, NetworkError
from enumeration.bisection import BisectionScheduler, SearchProbe
from enumeration.drivers.github import GithubDriver
from schemas.enumeration import EnumerationOptions, EnumerationRange


START = date(2020, 1, 1)


def options_for(days, **overrides):
    values = {
        "min_stars": 0,
        "star_overlap": 0,
        "start_date": START,
        "end_date": date.fromordinal(START.toordinal() + days - 1),
        "workers": 4,
        "query": "is:public",
    }
    values.update(overrides)
    return EnumerationOptions(**values)


async def collect_plan(scheduler, root=None):
    return [rng async for rng in scheduler.plan(root)]


class TestCompleteness:
    """Deduplicated output equals the catalog"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cap", [1, 2, 3, 10, 40])
    @pytest.mark.parametrize("overlap", [0, 3])
    async def test_every_repository_is_enumerated(
        self, cap, overlap, synthetic_client_cls, catalog_factory, memory_sink
    ):
        catalog = catalog_factory(250, START, days=30)
        client = synthetic_client_cls(catalog, cap=cap, per_page=4)
        options = options_for(30, star_overlap=overlap, result_cap=1000)

        driver = GithubDriver(options, client=client)
        result = await driver.enumerate(memory_sink)

        assert set(memory_sink.identifiers) == {repo["full_name"] for repo in catalog}
        assert result.failed_tasks == []
        assert result.truncated_ranges == []

    @pytest.mark.asyncio
    async def test_uniform_window_bisects_dates_before_first_query(self, synthetic_client_cls, catalog_factory):
        """2500 repositories over 100 days with a cap of 1000"""
        catalog = catalog_factory(2500, START, days=100, star_span=1000)
        client = synthetic_client_cls(catalog, cap=1000, per_page=100)
        scheduler = BisectionScheduler(client, options_for(100))

        plan = scheduler.plan()
        first = await plan.__anext__()
        assert scheduler.stats.date_splits >= 2
        assert first.days < 100

        ranges = [first] + [rng async for rng in plan]
        seen = set()
        for rng in ranges:
            seen.update(repo["full_name"] for repo in client.matches(rng.to_query("is:public")))
        assert len(seen) == 2500

    @pytest.mark.asyncio
    async def test_uniform_window_end_to_end(self, synthetic_client_cls, catalog_factory, memory_sink):
        catalog = catalog_factory(2500, START, days=100, star_span=1000)
        client = synthetic_client_cls(catalog, cap=1000, per_page=100)

        result = await GithubDriver(options_for(100), client=client).enumerate(memory_sink)

        assert len(set(memory_sink.identifiers)) == 2500
        assert result.status == "success"


class TestCapRespect:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cap", [2, 5, 25])
    async def test_executed_ranges_are_under_cap(self, cap, synthetic_client_cls, catalog_factory):
        catalog = catalog_factory(300, START, days=45)
        client = synthetic_client_cls(catalog, cap=cap)
        scheduler = BisectionScheduler(client, options_for(45, star_overlap=2))

        for rng in await collect_plan(scheduler):
            assert len(client.matches(rng.to_query("is:public"))) < cap

    @pytest.mark.asyncio
    async def test_cap_of_one_only_executes_indivisible_cells(self, synthetic_client_cls, catalog_factory):
        catalog = catalog_factory(60, START, days=10)
        client = synthetic_client_cls(catalog, cap=1)
        scheduler = BisectionScheduler(client, options_for(10))

        for rng in await collect_plan(scheduler):
            found = client.matches(rng.to_query("is:public"))
            assert len(found) == 1
            assert rng.is_single_day
            assert {repo["stargazers_count"] for repo in found} == {rng.min_stars}

    @pytest.mark.asyncio
    async def test_effective_cap_is_the_smaller_of_client_and_options(self, synthetic_client_cls):
        client = synthetic_client_cls([], cap=1000)
        scheduler = BisectionScheduler(client, options_for(5, result_cap=50))
        assert scheduler.cap == 50


class TestBoundaryInclusion:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overlap", [0, 1, 5, 50, 500])
    async def test_repository_at_min_stars_is_always_present(
        self, overlap, synthetic_client_cls, catalog_factory, memory_sink
    ):
        catalog = catalog_factory(200, START, days=5, min_stars=100)
        boundary = {"full_name": "edge/at-min", "created": START, "stargazers_count": 100}
        catalog.append(boundary)
        client = synthetic_client_cls(catalog, cap=4)
        options = options_for(5, min_stars=100, star_overlap=overlap, require_min_stars=True)

        await GithubDriver(options, client=client).enumerate(memory_sink)

        assert "edge/at-min" in memory_sink.identifiers

    @pytest.mark.asyncio
    async def test_lower_bound_never_exceeds_min_stars(self, synthetic_client_cls, catalog_factory):
        catalog = catalog_factory(200, START, days=3, min_stars=100)
        client = synthetic_client_cls(catalog, cap=3)
        scheduler = BisectionScheduler(client, options_for(3, min_stars=100, star_overlap=30, require_min_stars=True))

        ranges = await collect_plan(scheduler)
        assert min(rng.min_stars for rng in ranges) == 100
        assert all(rng.min_stars >= 100 for rng in ranges)


class TestEdgeCases:

    @pytest.mark.asyncio
    async def test_empty_range_is_dropped_after_one_probe(self, synthetic_client_cls):
        client = synthetic_client_cls([], cap=10)
        scheduler = BisectionScheduler(client, options_for(365))

        assert await collect_plan(scheduler) == []
        assert len(client.probes) == 1
        assert scheduler.stats.empty == 1

    @pytest.mark.asyncio
    async def test_probe_failure_is_recorded_and_planning_continues(self, synthetic_client_cls, catalog_factory):
        catalog = catalog_factory(40, START, days=10)
        client = synthetic_client_cls(catalog, cap=30)
        original_probe = client.probe
        calls = {"n": 0}

        async def flaky_probe(query):
            calls["n"] += 1
            if calls["n"] == 2:
                raise NetworkError("connection reset", context={"query": query})
            return await original_probe(query)

        client.probe = flaky_probe
        scheduler = BisectionScheduler(client, options_for(10))
        ranges = await collect_plan(scheduler)

        assert len(scheduler.stats.failed) == 1
        assert isinstance(scheduler.stats.failed[0].error, NetworkError)
        assert len(ranges) == 1

    @pytest.mark.asyncio
    async def test_indivisible_over_cap_range_is_truncated(self, synthetic_client_cls):
        catalog = [
            {"full_name": f"same/repo-{i}", "created": START, "stargazers_count": 150}
            for i in range(6)
        ]
        client = synthetic_client_cls(catalog, cap=4)
        scheduler = BisectionScheduler(client, options_for(1, min_stars=100))

        ranges = await collect_plan(scheduler)

        assert len(ranges) == 1
        assert len(scheduler.stats.truncated) == 1
        assert scheduler.stats.truncated[0].count == 6
        assert scheduler.stats.failed == []

    @pytest.mark.asyncio
    async def test_boundary_cell_over_cap_fails_when_min_stars_required(self, synthetic_client_cls):
        catalog = [
            {"full_name": f"same/repo-{i}", "created": START, "stargazers_count": 100}
            for i in range(6)
        ]
        client = synthetic_client_cls(catalog, cap=4)
        scheduler = BisectionScheduler(client, options_for(1, min_stars=100, require_min_stars=True))

        ranges = await collect_plan(scheduler)

        assert len(ranges) == 1
        assert scheduler.stats.truncated == []
        assert isinstance(scheduler.stats.failed[0].error, IncompleteEnumerationError)

    @pytest.mark.asyncio
    async def test_custom_root_range(self, synthetic_client_cls, catalog_factory):
        catalog = catalog_factory(100, START, days=20)
        client = synthetic_client_cls(catalog, cap=1000)
        scheduler = BisectionScheduler(client, options_for(20))
        root = EnumerationRange(start_date=START, end_date=START, min_stars=0)

        ranges = await collect_plan(scheduler, root)

        assert ranges == [root]
        assert client.probes[0][0] == "is:public created:2020-01-01..2020-01-01 stars:>=0"


class TestProbeContract:

    @pytest.mark.asyncio
    async def test_probe_without_observed_max_cannot_split_unbounded_day(self):
        class CountOnlyClient:
            result_cap = 2

            async def probe(self, query):
                return SearchProbe(total_count=5, max_stars=None)

            async def fetch_page(self, query, page):
                raise AssertionError("not used")

        scheduler = BisectionScheduler(CountOnlyClient(), options_for(1))
        ranges = await collect_plan(scheduler)

        assert len(ranges) == 1
        assert scheduler.stats.star_splits == 0
        assert len(scheduler.stats.truncated) == 1
