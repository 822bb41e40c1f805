from __future__ import annotations

from mirror.db.session import ensure_schema
from mirror.repositories.backlog import BacklogQueue
from mirror.repositories.stories import StoryStore
from mirror.settings import Settings, get_settings


def init_db() -> None:
    ensure_schema()


def settings_dependency() -> Settings:
    return get_settings()


def story_store_dependency() -> StoryStore:
    return StoryStore()


def backlog_queue_dependency() -> BacklogQueue:
    return BacklogQueue()
