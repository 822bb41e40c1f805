from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mirror.repositories.backlog import BacklogQueue
from mirror.repositories.stories import StoryStore
from mirror.settings import Settings
from mirror.tasks import update as update_tasks

from .database import backlog_queue_dependency, settings_dependency, story_store_dependency
from .models import StatsResponse, StoryFeed, UpdateResponse
from .repositories import build_stats, list_recent_stories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

StoreDep = Annotated[StoryStore, Depends(story_store_dependency)]
QueueDep = Annotated[BacklogQueue, Depends(backlog_queue_dependency)]
SettingsDep = Annotated[Settings, Depends(settings_dependency)]


@router.get("/stories", response_model=StoryFeed, response_model_by_alias=True)
def list_stories_route(store: StoreDep, settings: SettingsDep) -> StoryFeed:
    return list_recent_stories(store, settings)


@router.get("/stats", response_model=StatsResponse)
def stats_route(store: StoreDep, queue: QueueDep) -> StatsResponse:
    return build_stats(store, queue)


@router.post("/manual-update", response_model=UpdateResponse, response_model_exclude_none=True)
def manual_update_route() -> UpdateResponse | JSONResponse:
    logger.info("api.manual_update.triggered")
    try:
        report = update_tasks.manual_update_core()
    except Exception as exc:
        logger.exception("api.manual_update.failed")
        body = UpdateResponse(success=False, error=f"Update process failed: {exc}")
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))
    return UpdateResponse(success=True, message="Database cleared and backlog seeded.", **report)
