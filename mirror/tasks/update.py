"""Celery tasks for the mirror update workflow."""

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict

from celery import shared_task

from mirror.db.models import JobStage
from mirror.db.session import ensure_schema
from mirror.repositories.job_runs import JobRunRecorder
from mirror.services.pipeline import Pipeline
from mirror.utils.logging import get_logger

# Pipeline factory is kept pluggable for tests; it must return a Pipeline-like context manager.
PIPELINE_FACTORY: Callable[[], Pipeline] = Pipeline


def steady_state_core() -> Dict[str, Any]:
    """Scheduled flow: sync, drain, prune. Errors are recorded and re-raised."""
    ensure_schema()
    trace_id = uuid.uuid4().hex
    logger = get_logger(__name__)
    logger.info("update.scheduled.start", extra={"trace_id": trace_id})
    with JobRunRecorder(stage=JobStage.STEADY_STATE, task_name="scheduled_update", trace_id=trace_id) as recorder:
        with PIPELINE_FACTORY() as pipeline:
            report = pipeline.run_steady_state()
        recorder.counters = report.counters()
    logger.info("update.scheduled.done", extra={"trace_id": trace_id, **report.counters()})
    return report.model_dump()


def manual_update_core() -> Dict[str, Any]:
    """Manual flow: full reset of stories and backlog, then cold start."""
    ensure_schema()
    trace_id = uuid.uuid4().hex
    logger = get_logger(__name__)
    logger.info("update.manual.start", extra={"trace_id": trace_id})
    with JobRunRecorder(stage=JobStage.COLD_START, task_name="manual_update", trace_id=trace_id) as recorder:
        with PIPELINE_FACTORY() as pipeline:
            pipeline.full_reset()
            report = pipeline.run_cold_start()
        recorder.counters = report.model_dump()
    logger.info("update.manual.done", extra={"trace_id": trace_id, **report.model_dump()})
    return report.model_dump()


def run_scheduled_update() -> Dict[str, Any]:
    """Steady-state entry point for the scheduler: logs failures instead of raising."""
    # No caller to answer; a failed run leaves resumable state for the next tick
    try:
        return {"success": True, **steady_state_core()}
    except Exception as exc:
        get_logger(__name__).exception("update.scheduled.failed")
        return {"success": False, "error": str(exc)}


@shared_task(name="mirror.tasks.update.scheduled_update")
def scheduled_update() -> Dict[str, Any]:  # pragma: no cover - thin Celery wrapper
    return run_scheduled_update()


@shared_task(name="mirror.tasks.update.manual_update")
def manual_update() -> Dict[str, Any]:  # pragma: no cover - thin Celery wrapper
    return manual_update_core()
