"""Durable record of orchestrator runs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from mirror.db.models import JobRun, JobStage, JobStatus
from mirror.db.session import session_scope

from .stories import SessionFactory


class JobRunRecorder:
    """Context manager to record a run's lifecycle in ``job_runs``.

    The RUNNING row is committed on entry so a run killed by the host deadline
    still leaves a trace. Counters set on the recorder are stored on exit.
    """

    def __init__(
        self,
        *,
        stage: JobStage,
        task_name: str,
        trace_id: str | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._session_factory = session_factory or session_scope
        self._job = JobRun(
            stage=stage,
            status=JobStatus.RUNNING,
            task_name=task_name,
            trace_id=trace_id,
            started_at=datetime.now(timezone.utc),
        )
        self.counters: Dict[str, Any] = {}

    def __enter__(self) -> "JobRunRecorder":
        with self._session_factory() as session:
            session.add(self._job)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if exc is None:
            self._job.status = JobStatus.SUCCEEDED
        else:
            self._job.status = JobStatus.FAILED
            self._job.error_message = str(exc)[:512]
        self._job.finished_at = datetime.now(timezone.utc)
        self._job.counters = dict(self.counters) or None
        # Never mask the original error with a bookkeeping failure
        try:
            with self._session_factory() as session:
                session.merge(self._job)
        except Exception:  # pragma: no cover
            if exc is None:
                raise
