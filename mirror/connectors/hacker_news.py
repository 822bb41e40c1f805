"""Item API connector (Hacker News Firebase API shape)."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx

from mirror.models.domain import SourceItem, parse_item
from mirror.settings import Settings, get_settings
from mirror.utils.logging import get_logger

from .base import FetchResult, PermanentError, TransientError, call_with_retry

logger = get_logger(__name__)


class HackerNewsClient:
    """Fetches single items and the current max ID with bounded retry.

    - ``fetch_item``: 재시도 소진 시 None 반환 (호출자는 skip 처리)
    - ``fetch_max_id``: 재시도 소진 시 마지막 오류를 그대로 전파
    """

    source = "hacker_news"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        cfg = settings or get_settings()
        self._base_url = cfg.item_api_base_url
        self._max_attempts = int(cfg.fetch_max_attempts)
        self._backoff = float(cfg.fetch_backoff_seconds)
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=float(cfg.item_api_timeout_seconds),
            limits=httpx.Limits(max_connections=int(cfg.fetch_concurrency)),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HackerNewsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def _get_json(self, path: str) -> Any:
        url = f"{self._base_url}/{path}"
        try:
            resp = self._client.get(url)
        except httpx.TimeoutException as exc:
            raise TransientError(f"item API 타임아웃: {url}") from exc
        except httpx.HTTPError as exc:
            raise TransientError(f"item API 호출 오류: {url}") from exc

        if not resp.is_success:
            raise TransientError(f"item API 일시 오류: {resp.status_code} {url}")
        try:
            return resp.json()
        except ValueError as exc:
            raise PermanentError(f"item API 응답 파싱 실패: {url}") from exc

    def _retry(self, fn: Callable[[], Any]) -> FetchResult[Any]:
        return call_with_retry(
            fn,
            max_attempts=self._max_attempts,
            backoff_seconds=self._backoff,
            sleep=self._sleep,
        )

    def fetch_item_result(self, item_id: int) -> FetchResult[Optional[SourceItem]]:
        """Fetch one item; a JSON ``null`` body is a successful ``None``."""
        result = self._retry(lambda: self._get_json(f"item/{item_id}.json"))
        if not result.ok:
            return FetchResult(error=result.error, attempts=result.attempts)
        return FetchResult(value=parse_item(result.value), attempts=result.attempts)

    def fetch_item(self, item_id: int) -> Optional[SourceItem]:
        result = self.fetch_item_result(item_id)
        if not result.ok:
            logger.error(
                "item.fetch_failed",
                extra={"item_id": item_id, "attempts": result.attempts, "error": str(result.error)},
            )
            return None
        return result.value

    def fetch_max_id(self) -> int:
        result = self._retry(lambda: self._get_json("maxitem.json"))
        if not result.ok:
            logger.error("maxitem.fetch_failed", extra={"attempts": result.attempts, "error": str(result.error)})
        value = result.unwrap()
        if isinstance(value, bool) or not isinstance(value, int):
            raise PermanentError(f"maxitem 응답이 정수가 아닙니다: {value!r}")
        return value
