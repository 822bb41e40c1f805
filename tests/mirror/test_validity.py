from __future__ import annotations

import pytest

from conftest import HORIZON, NOW, make_story
from mirror.models.domain import ItemKind, SourceItem, parse_item
from mirror.services.validity import is_valid


def test_popular_story_inside_window_is_valid():
    assert is_valid(make_story(1, score=5, comments=20, time=NOW), HORIZON)


def test_both_thresholds_missed_is_invalid():
    assert not is_valid(make_story(1, score=5, comments=5, time=NOW), HORIZON)


@pytest.mark.parametrize("score,comments", [(0, 50), (50, 0), (-3, 50), (100, -1)])
def test_non_positive_score_or_comments_is_invalid(score: int, comments: int):
    assert not is_valid(make_story(1, score=score, comments=comments), HORIZON)


@pytest.mark.parametrize("score,comments", [(10, 1), (1, 10), (10, 10), (250, 3)])
def test_one_threshold_is_enough(score: int, comments: int):
    assert is_valid(make_story(1, score=score, comments=comments), HORIZON)


def test_story_older_than_horizon_is_invalid():
    assert not is_valid(make_story(1, time=HORIZON - 1), HORIZON)
    assert is_valid(make_story(1, time=HORIZON), HORIZON)


def test_missing_and_non_story_items_are_invalid():
    assert not is_valid(None, HORIZON)
    comment = SourceItem(id=2, kind=ItemKind.COMMENT, time=NOW)
    assert not is_valid(comment, HORIZON)


def test_parse_item_maps_api_payload():
    story = parse_item(
        {
            "id": 42,
            "type": "story",
            "by": "dang",
            "time": NOW,
            "title": "Show HN: a thing",
            "score": 12,
            "descendants": 3,
        }
    )
    assert story is not None and story.kind is ItemKind.STORY
    assert story.comment_count == 3
    assert story.url is None
    assert is_valid(story, HORIZON)

    poll = parse_item({"id": 43, "type": "pollopt", "time": NOW})
    assert poll is not None and poll.kind is ItemKind.OTHER
    assert parse_item(None) is None
