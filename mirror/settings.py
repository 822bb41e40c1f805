"""Configuration models for the mirror service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import (
    Field,
    PositiveFloat,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

# 외부 저장소의 단일 커밋 최대 쓰기 수
MAX_STORE_WRITES_PER_COMMIT = 500


class Settings(BaseSettings):
    """Mirror 파이프라인 환경 설정."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    redis_url: str = Field(..., alias="INGESTION_REDIS_URL", description="Celery 브로커/백엔드 Redis DSN.")
    postgres_dsn: str = Field(..., alias="POSTGRES_DSN", description="미러 DB 연결 문자열.")
    item_api_base_url: str = Field(
        "https://hacker-news.firebaseio.com/v0",
        alias="ITEM_API_BASE_URL",
        description="아이템 API 베이스 URL",
    )
    item_api_timeout_seconds: PositiveFloat = Field(10, alias="ITEM_API_TIMEOUT_SECONDS", description="아이템 API 타임아웃(초)")
    fetch_max_attempts: PositiveInt = Field(3, alias="FETCH_MAX_ATTEMPTS", description="아이템 API 최대 시도 횟수")
    fetch_backoff_seconds: float = Field(0.3, ge=0, alias="FETCH_BACKOFF_SECONDS", description="재시도 지연 기준값(초)")
    fetch_concurrency: PositiveInt = Field(50, alias="FETCH_CONCURRENCY", description="배치 내 동시 fetch 수")
    batch_size: PositiveInt = Field(400, alias="BATCH_SIZE", description="ID 배치 크기")
    backlog_batches_per_run: PositiveInt = Field(30, alias="BACKLOG_BATCHES_PER_RUN", description="실행당 backlog 처리 수")
    retention_days: PositiveInt = Field(30, alias="RETENTION_DAYS", description="보존 기간(일)")
    cutoff_initial_jump: PositiveInt = Field(100_000, alias="CUTOFF_INITIAL_JUMP", description="cutoff 탐색 점프 크기")
    cutoff_max_failed_rounds: PositiveInt = Field(
        10,
        alias="CUTOFF_MAX_FAILED_ROUNDS",
        description="cutoff 탐색 연속 실패 허용 횟수",
    )
    backlog_write_chunk_size: PositiveInt = Field(100, alias="BACKLOG_WRITE_CHUNK_SIZE", description="backlog 커밋 단위")
    store_write_chunk_size: PositiveInt = Field(
        MAX_STORE_WRITES_PER_COMMIT,
        alias="STORE_WRITE_CHUNK_SIZE",
        description="스토리 저장 커밋 단위",
    )
    stats_page_size: PositiveInt = Field(1000, alias="STATS_PAGE_SIZE", description="통계 집계 페이지 크기")
    update_interval_minutes: PositiveInt = Field(30, alias="UPDATE_INTERVAL_MINUTES", description="정기 업데이트 주기(분)")
    scheduled_update_enabled: bool = Field(True, alias="SCHEDULED_UPDATE_ENABLED", description="정기 업데이트 사용 여부")
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="구조화 로그 레벨.")
    log_json: bool = Field(False, alias="LOG_JSON", description="로그를 JSON 형식으로 출력할지 여부.")
    celery_worker_concurrency: PositiveInt = Field(
        1,
        alias="CELERY_WORKER_CONCURRENCY",
        description="Celery 워커 동시 실행 수.",
    )
    celery_task_soft_time_limit: PositiveInt = Field(
        540,
        alias="CELERY_TASK_SOFT_TIME_LIMIT",
        description="Celery 태스크 소프트 타임아웃 (초).",
    )

    @field_validator("postgres_dsn")
    @classmethod
    def _validate_postgres_dsn(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("POSTGRES_DSN은 유효한 DSN 문자열이어야 합니다.")
        return value

    @field_validator("item_api_base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        url = value.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("ITEM_API_BASE_URL은 http(s) URL이어야 합니다.")
        return url

    @field_validator("store_write_chunk_size")
    @classmethod
    def _validate_store_chunk(cls, v: int) -> int:
        if v > MAX_STORE_WRITES_PER_COMMIT:
            raise ValueError(f"STORE_WRITE_CHUNK_SIZE는 {MAX_STORE_WRITES_PER_COMMIT} 이하여야 합니다.")
        return v

    @model_validator(mode="after")
    def _validate_batch_bounds(self) -> "Settings":
        if self.fetch_concurrency > self.batch_size:
            raise ValueError("FETCH_CONCURRENCY는 BATCH_SIZE 이하여야 합니다.")
        # A batch is persisted in a single commit
        if self.batch_size > self.store_write_chunk_size:
            raise ValueError("BATCH_SIZE는 STORE_WRITE_CHUNK_SIZE 이하여야 합니다.")
        return self

    @property
    def retention_seconds(self) -> int:
        return self.retention_days * 24 * 60 * 60


@lru_cache()
def get_settings() -> Settings:
    """환경 변수를 기준으로 Settings 인스턴스를 반환한다."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"환경 변수 검증에 실패했습니다: {exc}") from exc


def reset_settings_cache() -> None:
    """Settings LRU 캐시를 초기화한다 (테스트 용도)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
