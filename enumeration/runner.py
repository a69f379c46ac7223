# ============================================================================
# File: enumeration/runner.py
# Description: Enumerates the configured platforms into one sink
# ============================================================================
"""
Enumeration Runner - drives every configured platform into a single sink.

This module provides:
- Up-front validation (unknown platform or output kind fails before any work)
- Per-platform isolation: a failed platform is logged and the next one runs
- Enumeration run audit rows when a database is available
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
import logging

from core.exceptions import CatalogError
from enumeration.base import EnumerationResult
from enumeration.registry import PLATFORMS, create_driver, create_sink, validate_output, validate_platforms
from models.base import RunStatus
from models.enumeration_run import EnumerationRun
from schemas.enumeration import EnumerationOptions

logger = logging.getLogger(__name__)


class RunTracker:
    """Writes one EnumerationRun row per platform; tracking failures never stop a run"""

    def __init__(self, session_factory: Optional[async_sessionmaker]):
        self.session_factory = session_factory

    async def start(self, platform: str, output_kind: str, options: EnumerationOptions) -> Optional[int]:
        if self.session_factory is None:
            return None
        try:
            async with self.session_factory() as session:
                run = EnumerationRun(
                    platform=platform,
                    platform_prefix=PLATFORMS[platform].table_prefix,
                    output_kind=output_kind,
                    status=RunStatus.RUNNING,
                    started_at=datetime.utcnow(),
                    config_snapshot=_jsonable(options.model_dump()),
                )
                session.add(run)
                await session.commit()
                await session.refresh(run)
                return run.id
        except SQLAlchemyError as e:
            logger.warning(f"Could not record enumeration run for {platform}: {e}")
            return None

    async def complete(
        self,
        run_id: Optional[int],
        status: RunStatus,
        result: Optional[EnumerationResult] = None,
        error_message: Optional[str] = None,
    ) -> None:
        if self.session_factory is None or run_id is None:
            return
        try:
            async with self.session_factory() as session:
                run = await session.get(EnumerationRun, run_id)
                if run is None:
                    return
                run.status = status
                run.completed_at = datetime.utcnow()
                run.duration_seconds = (run.completed_at - run.started_at).total_seconds()
                run.error_message = error_message
                if result is not None:
                    run.records_written = result.records_written
                    run.records_failed = result.records_failed
                    run.failed_ranges = _jsonable(result.failed_tasks)
                    run.truncated_ranges = _jsonable(result.truncated_ranges)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Could not complete enumeration run {run_id}: {e}")


def _jsonable(value: Any) -> Any:
    """Dates and other scalars to strings so the value fits a JSON column"""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class EnumerationRunner:
    """
    Enumeration orchestrator.

    Responsibilities:
    - Validate platforms and output before touching the network
    - Build one sink for the whole run and close it on every exit path
    - Run each platform driver in turn, isolating platform failures
    - Record per-platform results (and audit rows when a database is given)
    """

    def __init__(
        self,
        output_kind: str = "stdout",
        output_path: Optional[str] = None,
        session_factory: Optional[async_sessionmaker] = None,
        options: Optional[EnumerationOptions] = None,
    ):
        self.output_kind = output_kind
        self.output_path = output_path
        self.session_factory = session_factory
        self.options = options or EnumerationOptions()
        self.tracker = RunTracker(session_factory)

    async def run(self, platforms: Iterable[str]) -> Dict[str, Any]:
        """
        Enumerate ``platforms`` in order.

        Returns:
            Dictionary with:
            - status: "success", "partial_success" or "failed"
            - platforms: per-platform result dictionaries

        Raises:
            ConfigurationError: unknown platform or output kind (nothing ran)
        """
        names = validate_platforms(platforms)
        validate_output(self.output_kind, self.output_path, self.session_factory)

        results: Dict[str, Dict[str, Any]] = {}

        async with create_sink(self.output_kind, self.output_path, self.session_factory) as sink:
            for name in names:
                driver = create_driver(name, self.options)
                run_id = await self.tracker.start(name, self.output_kind, self.options)

                try:
                    result = await driver.enumerate(sink)
                except CatalogError as e:
                    logger.error(
                        f"failed to enumerate {name}: {e.message}",
                        extra={"error_context": e.to_dict()}
                    )
                    await self.tracker.complete(run_id, RunStatus.FAILED, driver.result, e.message)
                    results[name] = {**driver.result.to_dict(), "status": "failed", "error": e.to_dict()}
                    continue
                except Exception as e:
                    logger.exception(f"failed to enumerate {name}")
                    await self.tracker.complete(run_id, RunStatus.FAILED, driver.result, str(e))
                    results[name] = {**driver.result.to_dict(), "status": "failed", "error": {"message": str(e)}}
                    continue

                status = RunStatus.SUCCESS if result.status == "success" else RunStatus.PARTIAL
                await self.tracker.complete(run_id, status, result)
                results[name] = result.to_dict()

        statuses = {result["status"] for result in results.values()}
        if statuses == {"success"}:
            overall = "success"
        elif statuses == {"failed"}:
            overall = "failed"
        else:
            overall = "partial_success"

        logger.info(f"Enumeration run completed: {overall} ({', '.join(names)})")
        return {"status": overall, "platforms": results}
