"""Storage eligibility rules for fetched items."""

from __future__ import annotations

from typing import Optional

from mirror.models.domain import SourceItem, StoryItem

# An item must clear at least one of these
MIN_SCORE = 10
MIN_COMMENTS = 10


def is_valid(item: Optional[SourceItem], retention_horizon: int) -> bool:
    """Return True if ``item`` is a popular enough story inside the window."""
    if item is None or not isinstance(item, StoryItem):
        return False
    if item.score <= 0 or item.comment_count <= 0:
        return False
    if item.score < MIN_SCORE and item.comment_count < MIN_COMMENTS:
        return False
    return (item.time or 0) >= retention_horizon
