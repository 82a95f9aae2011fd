"""Tests for the in-process trigger."""
from unittest.mock import AsyncMock

from pingpilot.services.scheduler import SchedulerService


async def test_start_registers_single_job():
    service = SchedulerService(AsyncMock(), tick_seconds=30)

    service.start()
    try:
        assert service.running is True
        jobs = service.scheduler.get_jobs()
        assert [j.id for j in jobs] == ["check_pass"]
        assert jobs[0].max_instances == 1
    finally:
        service.stop()

    assert service.running is False


async def test_failed_pass_is_logged_not_raised():
    orchestrator = AsyncMock()
    orchestrator.run_pass.side_effect = ConnectionError("database unreachable")
    service = SchedulerService(orchestrator, tick_seconds=30)

    await service._run_pass()

    orchestrator.run_pass.assert_awaited_once()
