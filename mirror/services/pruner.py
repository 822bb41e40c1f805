"""Retention pruning."""

from __future__ import annotations

from mirror.repositories.stories import StoryStore
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


class RetentionPruner:
    def __init__(self, store: StoryStore) -> None:
        self._store = store

    def prune_older_than(self, horizon: int) -> int:
        """Delete stored stories with ``timestamp < horizon``; returns the count."""
        removed = self._store.delete_older_than(horizon)
        if removed:
            logger.info("prune.removed", extra={"count": removed, "horizon": horizon})
        return removed
