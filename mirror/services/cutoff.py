"""Locate the first ID inside the retention window.

Two phases over the external ID space, probing item timestamps:

1. coarse: step back from ``max_id`` by a constant jump until a probe lands
   outside the window (or reaches ID 1);
2. refine: bisect between the last outside probe and the last inside probe
   until the gap is no wider than one batch.

The result is the upper bound of the final gap, so every ID at or after it is
inside the window and the true boundary lies less than one batch below it.
"""

from __future__ import annotations

from mirror.connectors.base import ConnectorError, ItemSource
from mirror.utils.logging import get_logger

logger = get_logger(__name__)


class CutoffSearchError(RuntimeError):
    """Too many consecutive failed probes."""


class CutoffFinder:
    def __init__(
        self,
        source: ItemSource,
        *,
        initial_jump: int = 100_000,
        precision: int = 400,
        max_failed_rounds: int = 10,
    ) -> None:
        self._source = source
        self._jump = int(initial_jump)
        self._precision = int(precision)
        self._max_failed_rounds = int(max_failed_rounds)

    def _is_within(self, item_id: int, horizon: int) -> bool:
        result = self._source.fetch_item_result(item_id)
        if not result.ok:
            assert result.error is not None
            raise result.error
        item = result.value
        # Missing items and items without a timestamp count as outside
        return item is not None and item.time is not None and item.time >= horizon

    def _probe(self, item_id: int, horizon: int, failures: int, phase: str) -> bool | None:
        """Probe once; ``None`` means the probe failed and the round is retried."""
        try:
            return self._is_within(item_id, horizon)
        except ConnectorError as exc:
            logger.warning(
                "cutoff.probe_failed",
                extra={"phase": phase, "item_id": item_id, "attempt": failures + 1, "max": self._max_failed_rounds},
            )
            if failures + 1 >= self._max_failed_rounds:
                raise CutoffSearchError(f"cutoff 탐색 실패 ({phase}, id={item_id})") from exc
            return None

    def find_cutoff_id(self, max_id: int, horizon: int) -> int:
        high = max_id
        low = max(1, max_id - self._jump)

        failures = 0
        while True:
            within = self._probe(low, horizon, failures, "coarse")
            if within is None:
                failures += 1
                continue
            failures = 0
            if not within:
                break
            if low == 1:
                logger.info("cutoff.reached_first_id", extra={"max_id": max_id})
                return 1
            high = low
            low = max(1, low - self._jump)
        logger.info("cutoff.coarse_range", extra={"low": low, "high": high})

        failures = 0
        while high - low > self._precision:
            mid = (high + low) // 2
            within = self._probe(mid, horizon, failures, "refine")
            if within is None:
                failures += 1
                continue
            failures = 0
            if within:
                high = mid
            else:
                low = mid

        logger.info("cutoff.found", extra={"cutoff_id": high, "max_id": max_id})
        return high
