import pytest
from unittest.mock import AsyncMock, patch
from enumeration.scheduler import EnumerationScheduler

@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = EnumerationScheduler(interval_hours=6)
    assert scheduler.scheduler is not None
    assert scheduler.interval_hours == 6
    # Default output is stdout, so no database is opened
    assert scheduler.engine is None
    assert scheduler.SessionLocal is None

@pytest.mark.asyncio
async def test_scheduler_job_execution():
    with patch("enumeration.scheduler.EnumerationRunner") as mock_runner_cls:
        mock_runner = AsyncMock()
        mock_runner.run.return_value = {"status": "success", "platforms": {}}
        mock_runner_cls.return_value = mock_runner

        scheduler = EnumerationScheduler()
        await scheduler.run_enumeration_job()

        assert mock_runner.run.called
        platforms = mock_runner.run.call_args[0][0]
        assert platforms == ["github"]

@pytest.mark.asyncio
async def test_scheduler_job_swallows_failures():
    with patch("enumeration.scheduler.EnumerationRunner") as mock_runner_cls:
        mock_runner_cls.return_value.run = AsyncMock(side_effect=RuntimeError("db down"))

        scheduler = EnumerationScheduler()
        # Must not raise: the next interval should still run
        await scheduler.run_enumeration_job()

@pytest.mark.asyncio
async def test_scheduler_registers_single_interval_job():
    scheduler = EnumerationScheduler(interval_hours=12)
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job("enumeration_job")
        assert job is not None
        assert job.max_instances == 1
        assert job.trigger.interval.total_seconds() == 12 * 3600
    finally:
        scheduler.stop()
