"""Backlog batch generation and bounded consumption."""

from __future__ import annotations

from typing import List

from mirror.models.domain import DrainReport
from mirror.repositories.backlog import BacklogQueue
from mirror.services.batch_processor import BatchProcessor
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


def generate_batches(max_id: int, cutoff_id: int, batch_size: int = 400) -> List[List[int]]:
    """Split ``[cutoff_id, max_id]`` into descending chunks, newest first.

    >>> generate_batches(10, 4, 3)
    [[10, 9, 8], [7, 6, 5], [4]]
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    batches: List[List[int]] = []
    current = max_id
    while current >= cutoff_id:
        end = max(cutoff_id, current - batch_size + 1)
        batches.append(list(range(current, end - 1, -1)))
        current = end - 1
    return batches


class BacklogConsumer:
    """Feeds pending batches to the processor one at a time.

    A batch is marked processed only after its processor call returns; if the
    call raises, draining stops and that batch stays pending for the next run.
    """

    def __init__(self, queue: BacklogQueue, processor: BatchProcessor) -> None:
        self._queue = queue
        self._processor = processor

    def drain(self, limit: int, horizon: int) -> DrainReport:
        report = DrainReport()
        batches = self._queue.take_pending(limit)
        if not batches:
            logger.info("backlog.empty")
            return report

        for batch in batches:
            result = self._processor.process(batch.batch_ids, horizon)
            self._queue.mark_processed(batch)
            report.batches += 1
            report.saved += result.saved
            logger.info("backlog.batch_processed", extra={"batch_number": batch.batch_number, "saved": result.saved})
        logger.info("backlog.drained", extra={"batches": report.batches, "saved": report.saved})
        return report
