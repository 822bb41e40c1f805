from __future__ import annotations

import logging
import time

from mirror.repositories.backlog import BacklogQueue
from mirror.repositories.stories import StoryStore
from mirror.services.pipeline import retention_horizon
from mirror.settings import Settings

from .models import StatsResponse, StoryFeed, StoryOut

logger = logging.getLogger(__name__)


def list_recent_stories(store: StoryStore, settings: Settings, now: float | None = None) -> StoryFeed:
    horizon = retention_horizon(settings.retention_seconds, time.time() if now is None else now)
    stories = [
        StoryOut(
            id=dto.id,
            title=dto.title,
            url=dto.url,
            score=dto.score,
            comment_count=dto.comment_count,
            by=dto.author,
            timestamp=dto.timestamp,
            date=dto.date,
        )
        for dto in store.newer_than(horizon)
    ]
    logger.info("api.stories", extra={"count": len(stories)})
    return StoryFeed(stories=stories)


def build_stats(store: StoryStore, queue: BacklogQueue) -> StatsResponse:
    return StatsResponse(
        total_posts=store.count_all(),
        posts_per_day=store.count_by_date(),
        progress=queue.progress(),
    )
