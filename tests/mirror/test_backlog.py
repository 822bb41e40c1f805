from __future__ import annotations

from typing import List, Sequence

import pytest

from conftest import HORIZON, FakeItemSource, make_story
from mirror.models.domain import BatchResult
from mirror.repositories.backlog import BacklogQueue
from mirror.repositories.stories import StoryStore
from mirror.services.backlog import BacklogConsumer, generate_batches
from mirror.services.batch_processor import BatchProcessor


def test_generate_batches_scenario():
    batches = generate_batches(1000, 201, 400)

    assert len(batches) == 2
    assert batches[0] == list(range(1000, 600, -1))
    assert batches[1] == list(range(600, 200, -1))


@pytest.mark.parametrize("max_id,cutoff_id,size", [(1000, 1, 400), (57, 57, 10), (12, 3, 5), (99_999, 12_345, 400)])
def test_generate_batches_covers_range_descending(max_id: int, cutoff_id: int, size: int):
    batches = generate_batches(max_id, cutoff_id, size)

    flat = [i for batch in batches for i in batch]
    assert flat == list(range(max_id, cutoff_id - 1, -1))
    assert all(len(batch) == size for batch in batches[:-1])
    assert 0 < len(batches[-1]) <= size


def test_generate_batches_empty_when_cutoff_above_max():
    assert generate_batches(10, 11, 400) == []


class _FlakyProcessor:
    def __init__(self, fail_on: int) -> None:
        self.fail_on = fail_on
        self.seen: List[List[int]] = []

    def process(self, candidate_ids: Sequence[int], horizon: int) -> BatchResult:
        self.seen.append(list(candidate_ids))
        if self.fail_on in candidate_ids:
            raise RuntimeError("store unavailable")
        return BatchResult(candidates=len(candidate_ids))


def test_drain_processes_in_order_and_marks_processed(story_store: StoryStore, backlog_queue: BacklogQueue):
    source = FakeItemSource({i: make_story(i) for i in range(1, 7)})
    backlog_queue.enqueue(generate_batches(6, 1, 2))
    consumer = BacklogConsumer(backlog_queue, BatchProcessor(source, story_store, concurrency=2))

    report = consumer.drain(2, HORIZON)

    assert report.batches == 2
    assert report.saved == 4
    assert story_store.existing_ids(range(1, 7)) == {3, 4, 5, 6}
    assert [b.batch_ids for b in backlog_queue.take_pending(10)] == [[2, 1]]


def test_failed_batch_stays_pending_and_is_retried_first(backlog_queue: BacklogQueue):
    backlog_queue.enqueue([[6, 5], [4, 3], [2, 1]])
    processor = _FlakyProcessor(fail_on=3)
    consumer = BacklogConsumer(backlog_queue, processor)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError):
        consumer.drain(3, HORIZON)

    assert processor.seen == [[6, 5], [4, 3]]
    pending = backlog_queue.take_pending(10)
    assert [b.batch_number for b in pending] == [1, 2]

    processor.fail_on = -1
    processor.seen.clear()
    report = consumer.drain(1, HORIZON)
    assert processor.seen == [[4, 3]]
    assert report.batches == 1


def test_drain_with_empty_queue(backlog_queue: BacklogQueue):
    consumer = BacklogConsumer(backlog_queue, _FlakyProcessor(fail_on=-1))  # type: ignore[arg-type]
    assert consumer.drain(30, HORIZON).batches == 0
