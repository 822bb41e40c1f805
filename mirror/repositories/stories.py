"""Item store gateway: the persistent story mirror."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from mirror.db.models import Story
from mirror.db.session import session_scope
from mirror.models.domain import StoryDTO
from mirror.settings import Settings, get_settings
from mirror.utils.iterables import chunked
from mirror.utils.logging import get_logger

SessionFactory = Callable[[], AbstractContextManager[Session]]

logger = get_logger(__name__)


def _to_dto(row: Story) -> StoryDTO:
    return StoryDTO.model_validate(row, from_attributes=True)


class StoryStore:
    """Batched reads and writes against the ``stories`` table.

    Every write is split into commits of at most ``store_write_chunk_size``
    rows; each commit is all-or-nothing, nothing spans commits.
    """

    def __init__(self, settings: Settings | None = None, *, session_factory: SessionFactory | None = None) -> None:
        cfg = settings or get_settings()
        self._session_factory = session_factory or session_scope
        self._write_chunk_size = int(cfg.store_write_chunk_size)
        self._page_size = int(cfg.stats_page_size)

    def existing_ids(self, ids: Iterable[int]) -> set[int]:
        wanted = list(ids)
        if not wanted:
            return set()
        with self._session_factory() as session:
            stmt = select(Story.id).where(Story.id.in_(wanted))
            return {row[0] for row in session.execute(stmt)}

    def upsert(self, stories: Sequence[StoryDTO]) -> int:
        count = 0
        for chunk in chunked(stories, self._write_chunk_size):
            with self._session_factory() as session:
                for dto in chunk:
                    session.merge(Story(**dto.model_dump()))
            count += len(chunk)
        return count

    def _delete_ids(self, ids: List[int]) -> int:
        for chunk in chunked(ids, self._write_chunk_size):
            with self._session_factory() as session:
                session.execute(delete(Story).where(Story.id.in_(chunk)))
        return len(ids)

    def delete_older_than(self, horizon: int) -> int:
        with self._session_factory() as session:
            ids = list(session.scalars(select(Story.id).where(Story.timestamp < horizon)))
        if not ids:
            return 0
        return self._delete_ids(ids)

    def delete_all(self) -> int:
        with self._session_factory() as session:
            ids = list(session.scalars(select(Story.id)))
        removed = self._delete_ids(ids)
        logger.info("stories.cleared", extra={"count": removed})
        return removed

    def max_stored_id(self) -> Optional[int]:
        with self._session_factory() as session:
            return session.scalar(select(func.max(Story.id)))

    def count_all(self) -> int:
        with self._session_factory() as session:
            return int(session.scalar(select(func.count()).select_from(Story)) or 0)

    def count_by_date(self) -> Dict[str, int]:
        """Per-day counts from a paginated scan of the ``date`` column only."""
        counts: Dict[str, int] = {}
        last: tuple[str, int] | None = None
        while True:
            stmt = select(Story.date, Story.id).order_by(Story.date, Story.id).limit(self._page_size)
            if last is not None:
                last_date, last_id = last
                stmt = stmt.where(or_(Story.date > last_date, and_(Story.date == last_date, Story.id > last_id)))
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
            for date, _id in rows:
                if date:
                    counts[date] = counts.get(date, 0) + 1
            if len(rows) < self._page_size:
                return counts
            last = (rows[-1][0], rows[-1][1])

    def newer_than(self, horizon: int) -> List[StoryDTO]:
        """Stories at or after ``horizon``, newest first."""
        with self._session_factory() as session:
            rows = session.scalars(
                select(Story).where(Story.timestamp >= horizon).order_by(Story.timestamp.desc(), Story.id.desc())
            ).all()
            return [_to_dto(row) for row in rows]
