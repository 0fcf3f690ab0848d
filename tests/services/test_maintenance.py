# tests/services/test_maintenance.py
import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from redis.exceptions import RedisError

from mx_space.repositories.analytics_repo import AccessRecordRepository
from mx_space.services.interactions import KIND_READ
from mx_space.services.maintenance import MaintenanceWorker


@pytest.fixture()
def worker(session_factory, tracker, tmp_path) -> MaintenanceWorker:
    return MaintenanceWorker(
        session_factory,
        tracker,
        interval=0.05,
        retention_days=7,
        temp_dir=tmp_path / "scratch",
    )


@pytest.mark.asyncio
async def test_run_once_performs_every_job(worker, session_factory, tracker, tmp_path) -> None:
    repository = AccessRecordRepository(session_factory)
    await repository.create_new({"path": "/stale", "created": datetime.now(UTC) - timedelta(days=30)})
    await repository.create_new({"path": "/fresh"})
    await tracker.mark(KIND_READ, "post-1", "203.0.113.1")
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    (scratch / "upload.part").write_text("partial")

    outcome = await worker.run_once()

    assert outcome == {"clean_access_records": True, "reset_interactions": True, "clean_temp_directory": True}
    assert [record.path for record in await repository.find()] == ["/fresh"]
    assert await tracker.members(KIND_READ, "post-1") == set()
    assert scratch.is_dir()
    assert list(scratch.iterdir()) == []


@pytest.mark.asyncio
async def test_failing_job_does_not_stop_the_others(worker, session_factory, mocker) -> None:
    mocker.patch.object(worker.tracker, "reset", side_effect=RedisError("redis down"))
    await AccessRecordRepository(session_factory).create_new(
        {"path": "/stale", "created": datetime.now(UTC) - timedelta(days=30)}
    )

    outcome = await worker.run_once()

    assert outcome["reset_interactions"] is False
    assert outcome["clean_access_records"] is True
    assert outcome["clean_temp_directory"] is True
    assert await AccessRecordRepository(session_factory).count_documents() == 0


@pytest.mark.asyncio
async def test_worker_loop_starts_and_stops(worker, mocker) -> None:
    run_once = mocker.patch.object(worker, "run_once", return_value={})

    await worker.start()
    assert worker.running
    await asyncio.sleep(0.35)
    await worker.stop()

    assert not worker.running
    assert run_once.await_count >= 1
