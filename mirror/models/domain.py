"""Domain DTOs for the mirror pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ItemKind(str, Enum):
    STORY = "story"
    COMMENT = "comment"
    JOB = "job"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "ItemKind":
        try:
            return cls(str(value))
        except ValueError:
            return cls.OTHER


class SourceItem(BaseModel):
    """Item as returned by the external API, validated at the boundary."""

    model_config = ConfigDict(frozen=True)

    id: int
    kind: ItemKind
    time: Optional[int] = Field(None, description="생성 시각 (epoch seconds)")


class StoryItem(SourceItem):
    """The only variant that carries the fields the pipeline stores."""

    kind: Literal[ItemKind.STORY] = ItemKind.STORY
    title: str = ""
    url: Optional[str] = None
    score: int = 0
    comment_count: int = Field(0, description="API의 descendants 값")
    author: str = ""


def parse_item(payload: Any) -> Optional[SourceItem]:
    """Map a decoded API payload to a typed item; ``None`` for null/malformed bodies."""
    if not isinstance(payload, dict) or "id" not in payload:
        return None
    kind = ItemKind.parse(payload.get("type"))
    try:
        if kind is ItemKind.STORY:
            return StoryItem(
                id=payload["id"],
                time=payload.get("time"),
                title=payload.get("title") or "",
                url=payload.get("url") or None,
                score=payload.get("score") or 0,
                comment_count=payload.get("descendants") or 0,
                author=payload.get("by") or "",
            )
        return SourceItem(id=payload["id"], kind=kind, time=payload.get("time"))
    except ValidationError:
        return None


class StoryDTO(BaseModel):
    """Normalized representation of a stored story."""

    id: int
    title: str
    url: Optional[str] = None
    score: int = Field(..., ge=0)
    comment_count: int = Field(..., ge=0)
    author: str
    timestamp: int = Field(..., description="생성 시각 (epoch seconds)")
    date: str = Field(..., description="UTC 기준 YYYY-MM-DD, 일자별 집계용")

    @classmethod
    def from_item(cls, item: StoryItem) -> "StoryDTO":
        timestamp = int(item.time or 0)
        return cls(
            id=item.id,
            title=item.title,
            url=item.url,
            score=item.score,
            comment_count=item.comment_count,
            author=item.author,
            timestamp=timestamp,
            date=datetime.fromtimestamp(timestamp, timezone.utc).date().isoformat(),
        )


class BacklogStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"


class BacklogBatchDTO(BaseModel):
    id: str
    batch_ids: List[int]
    status: BacklogStatus
    batch_number: int
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


class BacklogProgress(BaseModel):
    total_batches: int = 0
    pending_batches: int = 0
    processed_batches: int = 0
    percent_complete: float = 100.0


class BatchResult(BaseModel):
    candidates: int = 0
    new: int = 0
    fetched: int = 0
    saved: int = 0


class SyncReport(BaseModel):
    stored_max_id: int
    external_max_id: int
    batches: int = 0
    saved: int = 0


class DrainReport(BaseModel):
    batches: int = 0
    saved: int = 0


class ColdStartReport(BaseModel):
    max_id: int
    cutoff_id: int
    batches: int


class SteadyStateReport(BaseModel):
    horizon: int
    sync: Optional[SyncReport] = None
    drain: Optional[DrainReport] = None
    pruned: int = 0

    def counters(self) -> Dict[str, Any]:
        return {
            "synced": self.sync.saved if self.sync else 0,
            "backlog_batches": self.drain.batches if self.drain else 0,
            "backlog_saved": self.drain.saved if self.drain else 0,
            "pruned": self.pruned,
        }
