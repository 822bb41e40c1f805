"""Durable backlog queue of deferred ingestion batches."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Sequence

from sqlalchemy import delete, func, select, update

from mirror.db.models import BacklogBatch
from mirror.db.session import session_scope
from mirror.models.domain import BacklogBatchDTO, BacklogProgress, BacklogStatus
from mirror.settings import Settings, get_settings
from mirror.utils.iterables import chunked
from mirror.utils.logging import get_logger

from .stories import SessionFactory

logger = get_logger(__name__)


def _to_dto(row: BacklogBatch) -> BacklogBatchDTO:
    return BacklogBatchDTO(
        id=str(row.id),
        batch_ids=list(row.batch_ids),
        status=row.status,
        batch_number=row.batch_number,
        created_at=row.created_at,
        processed_at=row.processed_at,
    )


class BacklogQueue:
    """Pending/processed batches, consumed in ascending ``batch_number`` order."""

    def __init__(self, settings: Settings | None = None, *, session_factory: SessionFactory | None = None) -> None:
        cfg = settings or get_settings()
        self._session_factory = session_factory or session_scope
        self._chunk_size = int(cfg.backlog_write_chunk_size)

    def enqueue(self, batches: Sequence[Sequence[int]]) -> int:
        """Persist generated ID lists as pending batches keyed by generation index."""
        logger.info("backlog.enqueue.start", extra={"batches": len(batches)})
        offset = 0
        for chunk in chunked(batches, self._chunk_size):
            created_at = datetime.now(timezone.utc)
            with self._session_factory() as session:
                session.add_all(
                    BacklogBatch(
                        batch_ids=list(ids),
                        status=BacklogStatus.PENDING,
                        batch_number=offset + index,
                        created_at=created_at,
                    )
                    for index, ids in enumerate(chunk)
                )
            logger.info("backlog.enqueue.chunk", extra={"start": offset, "end": offset + len(chunk)})
            offset += len(chunk)
        return offset

    def take_pending(self, limit: int) -> List[BacklogBatchDTO]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(BacklogBatch)
                .where(BacklogBatch.status == BacklogStatus.PENDING)
                .order_by(BacklogBatch.batch_number)
                .limit(limit)
            ).all()
            return [_to_dto(row) for row in rows]

    def mark_processed(self, batch: BacklogBatchDTO) -> None:
        with self._session_factory() as session:
            session.execute(
                update(BacklogBatch)
                .where(BacklogBatch.id == uuid.UUID(batch.id))
                .values(status=BacklogStatus.PROCESSED, processed_at=datetime.now(timezone.utc))
            )

    def clear(self) -> int:
        with self._session_factory() as session:
            removed = session.execute(delete(BacklogBatch)).rowcount or 0
        logger.info("backlog.cleared", extra={"count": removed})
        return removed

    def progress(self) -> BacklogProgress:
        with self._session_factory() as session:
            total = int(session.scalar(select(func.count()).select_from(BacklogBatch)) or 0)
            pending = int(
                session.scalar(
                    select(func.count()).select_from(BacklogBatch).where(BacklogBatch.status == BacklogStatus.PENDING)
                )
                or 0
            )
        processed = total - pending
        percent = round(processed / total * 100, 2) if total else 100.0
        return BacklogProgress(
            total_batches=total,
            pending_batches=pending,
            processed_batches=processed,
            percent_complete=percent,
        )
