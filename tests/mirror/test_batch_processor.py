from __future__ import annotations

from conftest import HORIZON, FakeItemSource, make_story
from mirror.repositories.stories import StoryStore
from mirror.services.batch_processor import BatchProcessor


def test_process_saves_only_valid_new_stories(story_store: StoryStore):
    source = FakeItemSource(
        {
            1: make_story(1),
            2: make_story(2, score=3, comments=3),
            3: make_story(3, time=HORIZON - 1),
            5: make_story(5, score=12, comments=1),
        },
        failing=[4],
    )
    processor = BatchProcessor(source, story_store, concurrency=4)

    result = processor.process([5, 4, 3, 2, 1, 6], HORIZON)

    assert result.new == 6
    assert result.fetched == 4
    assert result.saved == 2
    assert story_store.existing_ids(range(1, 7)) == {1, 5}


def test_reprocessing_stored_batch_is_a_noop(story_store: StoryStore):
    source = FakeItemSource({i: make_story(i) for i in range(1, 4)})
    processor = BatchProcessor(source, story_store, concurrency=2)
    processor.process([3, 2, 1], HORIZON)
    source.calls.clear()

    result = processor.process([3, 2, 1], HORIZON)

    assert source.calls == []
    assert result.new == 0 and result.saved == 0
    assert story_store.count_all() == 3


def test_only_unstored_ids_are_fetched(story_store: StoryStore):
    source = FakeItemSource({i: make_story(i) for i in range(1, 5)})
    processor = BatchProcessor(source, story_store, concurrency=2)
    processor.process([1, 2], HORIZON)
    source.calls.clear()

    processor.process([1, 2, 3, 4], HORIZON)

    assert sorted(source.calls) == [3, 4]
    assert story_store.count_all() == 4


def test_story_with_very_long_url_is_saved(story_store: StoryStore):
    long_url = "https://example.com/" + "a" * 3000
    source = FakeItemSource({7: make_story(7, url=long_url, title="T" * 1000)})
    processor = BatchProcessor(source, story_store, concurrency=1)

    result = processor.process([7], HORIZON)

    assert result.saved == 1
    [stored] = story_store.newer_than(HORIZON)
    assert stored.url == long_url
    assert len(stored.title) == 1000
