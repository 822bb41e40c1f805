from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mirror.connectors.base import FetchResult, TransientError  # noqa: E402
from mirror.models.domain import SourceItem, StoryItem  # noqa: E402
from mirror.settings import get_settings, reset_settings_cache  # noqa: E402

NOW = 1_760_000_000
DAY = 24 * 60 * 60
HORIZON = NOW - 30 * DAY


def make_story(
    item_id: int,
    *,
    score: int = 50,
    comments: int = 20,
    time: int = NOW,
    title: str | None = None,
    url: str | None = "https://example.com/story",
) -> StoryItem:
    return StoryItem(
        id=item_id,
        time=time,
        title=title or f"Story {item_id}",
        url=url,
        score=score,
        comment_count=comments,
        author="pg",
    )


class FakeItemSource:
    """In-memory item API: a dict of items or a function of the ID."""

    def __init__(
        self,
        items: Dict[int, SourceItem] | Callable[[int], Optional[SourceItem]] | None = None,
        *,
        max_id: int = 0,
        failing: Iterable[int] = (),
    ) -> None:
        self._items = items or {}
        self.max_id = max_id
        self.failing = set(failing)
        self.fail_next = 0
        self.calls: List[int] = []

    def fetch_item_result(self, item_id: int) -> FetchResult[Optional[SourceItem]]:
        self.calls.append(item_id)
        if self.fail_next > 0:
            self.fail_next -= 1
            return FetchResult(error=TransientError("flaky"), attempts=3)
        if item_id in self.failing:
            return FetchResult(error=TransientError(f"down: {item_id}"), attempts=3)
        if callable(self._items):
            return FetchResult(value=self._items(item_id), attempts=1)
        return FetchResult(value=self._items.get(item_id), attempts=1)

    def fetch_item(self, item_id: int) -> Optional[SourceItem]:
        return self.fetch_item_result(item_id).value

    def fetch_max_id(self) -> int:
        return self.max_id


@pytest.fixture()
def mirror_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("INGESTION_REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("POSTGRES_DSN", f"sqlite:///{tmp_path / 'mirror.db'}")
    monkeypatch.setenv("FETCH_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("FETCH_CONCURRENCY", "8")
    reset_settings_cache()

    from mirror.db.session import ensure_schema

    ensure_schema()
    yield get_settings()
    reset_settings_cache()


@pytest.fixture()
def story_store(mirror_env):
    from mirror.repositories.stories import StoryStore

    return StoryStore(mirror_env)


@pytest.fixture()
def backlog_queue(mirror_env):
    from mirror.repositories.backlog import BacklogQueue

    return BacklogQueue(mirror_env)
