"""Dedup, fetch, filter and persist one batch of candidate IDs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from mirror.connectors.base import ItemSource
from mirror.models.domain import BatchResult, SourceItem, StoryDTO, StoryItem
from mirror.repositories.stories import StoryStore
from mirror.services.validity import is_valid
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


class BatchProcessor:
    """The unit of dedup for both incremental sync and backlog catch-up.

    Re-running a batch whose IDs are all stored costs one existence query and
    nothing else. Fetches fan out over a worker pool scoped to the batch and
    are joined before filtering; one upsert per call, or none.
    """

    def __init__(self, source: ItemSource, store: StoryStore, *, concurrency: int = 50) -> None:
        self._source = source
        self._store = store
        self._concurrency = max(1, int(concurrency))

    def _fetch_all(self, ids: Sequence[int]) -> List[Optional[SourceItem]]:
        workers = min(self._concurrency, len(ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="item-fetch") as pool:
            return list(pool.map(self._source.fetch_item, ids))

    def process(self, candidate_ids: Sequence[int], horizon: int) -> BatchResult:
        existing = self._store.existing_ids(candidate_ids)
        new_ids = [item_id for item_id in candidate_ids if item_id not in existing]
        if not new_ids:
            logger.info("batch.no_new_ids", extra={"candidates": len(candidate_ids)})
            return BatchResult(candidates=len(candidate_ids))

        items = self._fetch_all(new_ids)
        fetched = sum(1 for item in items if item is not None)
        valid = [StoryDTO.from_item(item) for item in items if is_valid(item, horizon) and isinstance(item, StoryItem)]

        saved = 0
        if valid:
            saved = self._store.upsert(valid)
            logger.info("batch.saved", extra={"saved": saved, "new": len(new_ids), "fetched": fetched})
        else:
            logger.info("batch.no_valid_stories", extra={"new": len(new_ids), "fetched": fetched})
        return BatchResult(candidates=len(candidate_ids), new=len(new_ids), fetched=fetched, saved=saved)
