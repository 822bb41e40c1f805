"""Orchestrates the cold-start and steady-state flows."""

from __future__ import annotations

import time
from typing import Callable, Optional

from mirror.connectors.base import ItemSource
from mirror.connectors.hacker_news import HackerNewsClient
from mirror.models.domain import ColdStartReport, SteadyStateReport
from mirror.repositories.backlog import BacklogQueue
from mirror.repositories.stories import StoryStore
from mirror.services.backlog import BacklogConsumer, generate_batches
from mirror.services.batch_processor import BatchProcessor
from mirror.services.cutoff import CutoffFinder
from mirror.services.pruner import RetentionPruner
from mirror.services.syncer import IncrementalSyncer
from mirror.settings import Settings, get_settings
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


def retention_horizon(window_seconds: int, now: Optional[float] = None) -> int:
    """Sliding window lower bound: ``now - window`` in epoch seconds."""
    current = time.time() if now is None else now
    return int(current) - int(window_seconds)


class Pipeline:
    """Stateless between invocations; everything resumable lives in the stores.

    Each flow recomputes the retention horizon once from the clock and threads
    it through every stage of that run.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        source: ItemSource | None = None,
        story_store: StoryStore | None = None,
        backlog_queue: BacklogQueue | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        cfg = settings or get_settings()
        self._settings = cfg
        self._clock = clock
        self._owned_client = None if source is not None else HackerNewsClient(cfg)
        self.source: ItemSource = source if source is not None else self._owned_client  # type: ignore[assignment]
        self.stories = story_store or StoryStore(cfg)
        self.backlog = backlog_queue or BacklogQueue(cfg)

        self.processor = BatchProcessor(self.source, self.stories, concurrency=cfg.fetch_concurrency)
        self.syncer = IncrementalSyncer(self.source, self.processor, batch_size=cfg.batch_size)
        self.cutoff_finder = CutoffFinder(
            self.source,
            initial_jump=cfg.cutoff_initial_jump,
            precision=cfg.batch_size,
            max_failed_rounds=cfg.cutoff_max_failed_rounds,
        )
        self.consumer = BacklogConsumer(self.backlog, self.processor)
        self.pruner = RetentionPruner(self.stories)

    def close(self) -> None:
        if self._owned_client is not None:
            self._owned_client.close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def horizon(self) -> int:
        return retention_horizon(self._settings.retention_seconds, self._clock())

    def full_reset(self) -> None:
        """Drop every stored story and backlog batch."""
        self.stories.delete_all()
        self.backlog.clear()
        logger.info("pipeline.reset")

    def run_cold_start(self) -> ColdStartReport:
        """Seed the backlog queue from the retention cutoff up to the current max ID."""
        horizon = self.horizon()
        max_id = self.source.fetch_max_id()
        logger.info("cold_start.start", extra={"max_id": max_id, "horizon": horizon})
        cutoff_id = self.cutoff_finder.find_cutoff_id(max_id, horizon)
        batches = generate_batches(max_id, cutoff_id, self._settings.batch_size)
        self.backlog.enqueue(batches)
        report = ColdStartReport(max_id=max_id, cutoff_id=cutoff_id, batches=len(batches))
        logger.info("cold_start.done", extra=report.model_dump())
        return report

    def run_steady_state(self) -> SteadyStateReport:
        """Sync new IDs, drain part of the backlog, then prune expired stories."""
        horizon = self.horizon()
        report = SteadyStateReport(horizon=horizon)

        stored_max_id = self.stories.max_stored_id()
        if stored_max_id is None:
            # Right after a cold start only the backlog can populate the store
            logger.warning("sync.skipped_empty_store")
        else:
            report.sync = self.syncer.sync_new_since(stored_max_id, horizon)

        report.drain = self.consumer.drain(self._settings.backlog_batches_per_run, horizon)
        report.pruned = self.pruner.prune_older_than(horizon)
        logger.info("steady_state.done", extra=report.counters())
        return report

    def run(self, cold_start: bool = False) -> ColdStartReport | SteadyStateReport:
        logger.info("pipeline.start", extra={"mode": "cold_start" if cold_start else "steady_state"})
        if cold_start:
            return self.run_cold_start()
        return self.run_steady_state()
