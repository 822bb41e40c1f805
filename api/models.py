from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from mirror.models.domain import BacklogProgress


class StoryOut(BaseModel):
    id: int
    title: str
    url: Optional[str] = None
    score: int
    comment_count: int = Field(..., serialization_alias="commentCount")
    by: str
    timestamp: int
    date: str


class StoryFeed(BaseModel):
    stories: list[StoryOut] = Field(default_factory=list)


class StatsResponse(BaseModel):
    total_posts: int
    posts_per_day: dict[str, int] = Field(default_factory=dict)
    progress: BacklogProgress


class UpdateResponse(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
    max_id: int | None = None
    cutoff_id: int | None = None
    batches: int | None = None
