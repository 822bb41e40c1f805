"""Incremental sync of IDs created since the last stored maximum."""

from __future__ import annotations

from typing import Optional

from mirror.connectors.base import ItemSource
from mirror.models.domain import SyncReport
from mirror.services.batch_processor import BatchProcessor
from mirror.utils.iterables import chunked
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


class EmptyStoreError(RuntimeError):
    """Incremental sync needs a populated store; cold start seeds an empty one."""


class IncrementalSyncer:
    def __init__(self, source: ItemSource, processor: BatchProcessor, *, batch_size: int = 400) -> None:
        self._source = source
        self._processor = processor
        self._batch_size = int(batch_size)

    def sync_new_since(self, stored_max_id: Optional[int], horizon: int) -> SyncReport:
        """Process ``[stored_max_id + 1, external max]`` chunk by chunk, sequentially."""
        if stored_max_id is None:
            raise EmptyStoreError("stories 테이블이 비어 있습니다. 기존 데이터셋 갱신에만 사용할 수 있습니다.")

        external_max_id = self._source.fetch_max_id()
        report = SyncReport(stored_max_id=stored_max_id, external_max_id=external_max_id)
        if external_max_id <= stored_max_id:
            logger.info("sync.up_to_date", extra={"max_id": external_max_id})
            return report

        new_ids = range(stored_max_id + 1, external_max_id + 1)
        logger.info("sync.start", extra={"new_ids": len(new_ids), "from_id": stored_max_id + 1, "to_id": external_max_id})
        for chunk in chunked(new_ids, self._batch_size):
            result = self._processor.process(chunk, horizon)
            report.batches += 1
            report.saved += result.saved
        logger.info("sync.done", extra={"batches": report.batches, "saved": report.saved})
        return report
