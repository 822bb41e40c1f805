"""Connector errors and the bounded retry wrapper."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, TypeVar

from mirror.models.domain import SourceItem

T = TypeVar("T")


class ConnectorError(Exception):
    """Base connector error."""


class TransientError(ConnectorError):
    """Retryable error (e.g., rate limit, network hiccup)."""


class PermanentError(ConnectorError):
    """Non-retryable error (e.g., 4xx semantics)."""


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a retried call: either a value or the last error."""

    value: Optional[T] = None
    error: Optional[ConnectorError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        if self.error is not None:
            raise self.error
        return self.value


def call_with_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 0.3,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchResult[T]:
    """Run ``fn`` up to ``max_attempts`` times with a linearly growing delay.

    Transient failures wait ``backoff_seconds * attempt`` before the next try;
    a permanent failure stops immediately. Errors are returned, never raised.
    """
    attempts = 0
    last_error: Optional[ConnectorError] = None
    while attempts < max_attempts:
        attempts += 1
        try:
            return FetchResult(value=fn(), attempts=attempts)
        except TransientError as exc:  # retry
            last_error = exc
            if attempts < max_attempts and backoff_seconds > 0:
                sleep(backoff_seconds * attempts)
        except PermanentError as exc:
            return FetchResult(error=exc, attempts=attempts)
    assert last_error is not None
    return FetchResult(error=last_error, attempts=attempts)


class ItemSource(Protocol):
    """What the pipeline needs from the external item API."""

    def fetch_item_result(self, item_id: int) -> FetchResult[Optional[SourceItem]]: ...
    def fetch_item(self, item_id: int) -> Optional[SourceItem]: ...
    def fetch_max_id(self) -> int: ...
