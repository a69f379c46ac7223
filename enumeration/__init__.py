"""
Platform enumeration engine.

Modules:
    base: PlatformDriver abstract base class and EnumerationResult
    bisection: BisectionScheduler for result-capped search APIs
    worker_pool: Bounded asyncio WorkerPool with per-task failure isolation
    http: HttpFetcher with retry, backoff and rate-limit handling
    registry: Platform and sink factories keyed by configuration names
    runner: EnumerationRunner orchestrating platforms into one sink
    scheduler: APScheduler job re-running the enumeration periodically

Subpackages:
    drivers: GitHub, GitLab, BitBucket, PyPI and npm drivers
    sinks: stdout, file and database sinks

Architecture:
    Driver (optionally BisectionScheduler + WorkerPool) -> Records -> Sink

    The GitHub driver probes ranges of (creation date x stars) until each one
    is under the search API's result cap, then pages through them on the
    worker pool. Overlapping star buckets may produce the same repository
    twice; the database sink's upsert keeps one row per identity.

Usage:
    from enumeration.runner import EnumerationRunner
    from schemas.enumeration import EnumerationOptions

Example:
    runner = EnumerationRunner(
        output_kind="db",
        session_factory=session_factory,
        options=EnumerationOptions(min_stars=50, workers=8),
    )
    result = await runner.run(["github", "gitlab"])

    print(result["platforms"]["github"]["records_written"])

Error Handling:
    Platform failures raise PlatformCommunicationError from the driver; the
    runner logs them with the platform name and moves on. Failed ranges and
    failed sink writes are collected in each EnumerationResult.
"""

__all__ = [
    "base",
    "bisection",
    "worker_pool",
    "http",
    "registry",
    "runner",
    "scheduler",
]
