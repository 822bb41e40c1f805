"""Database utilities for the mirror service."""

from .models import BacklogBatch, Base, JobRun, JobStage, JobStatus, Story  # noqa: F401
from .session import ensure_schema, get_engine, get_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "BacklogBatch",
    "Base",
    "JobRun",
    "JobStage",
    "JobStatus",
    "Story",
    "ensure_schema",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
