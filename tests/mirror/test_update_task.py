from __future__ import annotations

import pytest
from sqlalchemy import select

from conftest import DAY, NOW, FakeItemSource, make_story
from mirror.db.models import JobRun, JobStage, JobStatus
from mirror.db.session import session_scope
from mirror.services.pipeline import Pipeline
from mirror.tasks import update as update_mod


@pytest.fixture()
def install_pipeline(mirror_env, monkeypatch):
    def _install(source: FakeItemSource) -> None:
        settings = mirror_env.model_copy(update={"batch_size": 10, "cutoff_initial_jump": 100, "fetch_concurrency": 4})
        monkeypatch.setattr(update_mod, "PIPELINE_FACTORY", lambda: Pipeline(settings, source=source, clock=lambda: NOW))

    return _install


def _latest_job() -> JobRun:
    with session_scope() as session:
        job = session.execute(select(JobRun).order_by(JobRun.started_at.desc())).scalars().first()
        assert job is not None
        return job


def _timeline(item_id: int):
    if item_id > 200:
        return None
    return make_story(item_id, time=NOW - (40 * DAY if item_id < 150 else DAY))


def test_manual_update_resets_and_seeds_backlog(install_pipeline):
    install_pipeline(FakeItemSource(_timeline, max_id=200))

    result = update_mod.manual_update_core()

    assert 150 <= result["cutoff_id"] < 160
    assert result["batches"] >= 5
    job = _latest_job()
    assert job.stage == JobStage.COLD_START
    assert job.status == JobStatus.SUCCEEDED
    assert job.counters["max_id"] == 200


def test_scheduled_update_records_success(install_pipeline):
    source = FakeItemSource(_timeline, max_id=200)
    install_pipeline(source)
    update_mod.manual_update_core()

    result = update_mod.run_scheduled_update()

    assert result["success"] is True
    assert result["drain"]["batches"] > 0
    job = _latest_job()
    assert job.stage == JobStage.STEADY_STATE
    assert job.status == JobStatus.SUCCEEDED
    assert job.counters["backlog_saved"] > 0


def test_scheduled_update_logs_failure_without_raising(install_pipeline):
    class _DownSource(FakeItemSource):
        def fetch_max_id(self) -> int:
            raise RuntimeError("maxitem unavailable")

    install_pipeline(_DownSource())
    from mirror.models.domain import StoryDTO
    from mirror.repositories.stories import StoryStore

    StoryStore().upsert([StoryDTO.from_item(make_story(1))])

    result = update_mod.run_scheduled_update()

    assert result == {"success": False, "error": "maxitem unavailable"}
    job = _latest_job()
    assert job.status == JobStatus.FAILED
    assert job.error_message == "maxitem unavailable"
