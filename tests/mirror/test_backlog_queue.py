from __future__ import annotations

from mirror.models.domain import BacklogStatus
from mirror.repositories.backlog import BacklogQueue


def test_enqueue_assigns_generation_order_across_chunks(mirror_env):
    queue = BacklogQueue(mirror_env.model_copy(update={"backlog_write_chunk_size": 2}))
    batches = [[10, 9], [8, 7], [6, 5], [4, 3], [2, 1]]

    assert queue.enqueue(batches) == 5

    pending = queue.take_pending(10)
    assert [b.batch_number for b in pending] == [0, 1, 2, 3, 4]
    assert [b.batch_ids for b in pending] == batches
    assert all(b.status is BacklogStatus.PENDING for b in pending)


def test_take_pending_limits_and_skips_processed(backlog_queue: BacklogQueue):
    backlog_queue.enqueue([[6, 5], [4, 3], [2, 1]])
    first = backlog_queue.take_pending(2)
    assert [b.batch_number for b in first] == [0, 1]

    backlog_queue.mark_processed(first[0])

    remaining = backlog_queue.take_pending(5)
    assert [b.batch_number for b in remaining] == [1, 2]


def test_progress_reports_percent_complete(backlog_queue: BacklogQueue):
    assert backlog_queue.progress().percent_complete == 100

    backlog_queue.enqueue([[3], [2], [1]])
    backlog_queue.mark_processed(backlog_queue.take_pending(1)[0])

    progress = backlog_queue.progress()
    assert progress.total_batches == 3
    assert progress.pending_batches == 2
    assert progress.processed_batches == 1
    assert progress.percent_complete == 33.33


def test_clear_removes_every_batch(backlog_queue: BacklogQueue):
    backlog_queue.enqueue([[2], [1]])
    backlog_queue.mark_processed(backlog_queue.take_pending(1)[0])

    assert backlog_queue.clear() == 2
    assert backlog_queue.take_pending(10) == []
    assert backlog_queue.progress().total_batches == 0
