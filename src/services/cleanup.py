"""보관 기간 만료 파일 정리

APScheduler BackgroundScheduler로 시작 시 1회, 이후 interval마다 sweep을 실행한다.
만료 판단 정책(handle 단위 / 객체 단위)은 각 storage 백엔드의 remove_expired가 담당.

상태:
    DISABLED (retention 또는 interval이 0 이하, 종료 상태)
    IDLE ⇄ SWEEPING
    STOPPED (stop() 호출 후)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from apscheduler.schedulers.background import BackgroundScheduler

from src.config import get_settings
from src.infra.storage import StorageBackend, get_storage

logger = logging.getLogger(__name__)

JOB_ID = "cleanup-expired"


class WorkerState(StrEnum):
    DISABLED = "disabled"
    IDLE = "idle"
    SWEEPING = "sweeping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class RetentionPolicy:
    retention_seconds: int
    interval_seconds: int

    @property
    def enabled(self) -> bool:
        return self.retention_seconds > 0 and self.interval_seconds > 0

    def cutoff(self, now: datetime) -> datetime:
        return now - timedelta(seconds=self.retention_seconds)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CleanupWorker:
    def __init__(
        self,
        storage: StorageBackend,
        policy: RetentionPolicy,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self.policy = policy
        self._clock = clock
        self.state = WorkerState.IDLE if policy.enabled else WorkerState.DISABLED
        self.scheduler: BackgroundScheduler | None = None

    def start(self) -> bool:
        """스케줄러 시작. 비활성 정책이면 False

        max_instances=1 이므로 이전 sweep이 끝나지 않은 주기는 건너뛴다.
        """
        if self.state == WorkerState.DISABLED:
            logger.info(
                f"Cleanup worker 비활성: retention={self.policy.retention_seconds}s, "
                f"interval={self.policy.interval_seconds}s"
            )
            return False
        if self.scheduler is not None and self.scheduler.running:
            return True

        self.scheduler = BackgroundScheduler(daemon=True)
        self.scheduler.add_job(
            func=self.run_once,
            trigger="interval",
            seconds=self.policy.interval_seconds,
            next_run_time=datetime.now(UTC),
            max_instances=1,
            coalesce=True,
            id=JOB_ID,
            name="Clean up expired files",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            f"Cleanup worker 시작: interval={self.policy.interval_seconds}s, "
            f"retention={self.policy.retention_seconds}s"
        )
        return True

    def stop(self, wait: bool = True) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
        self.scheduler = None
        if self.state != WorkerState.DISABLED:
            self.state = WorkerState.STOPPED
            logger.info("Cleanup worker 종료")

    def run_once(self, now: datetime | None = None) -> int:
        """sweep 1회 실행. 오류는 로그만 남기고 0 반환 (다음 주기에 재시도)"""
        if not self.policy.enabled:
            return 0

        self.state = WorkerState.SWEEPING
        try:
            cutoff = self.policy.cutoff(now or self._clock())
            removed = self._storage.remove_expired(cutoff)
            logger.info(f"Cleanup sweep 완료: {removed}개 삭제 (cutoff={cutoff.isoformat()})")
            return removed
        except Exception as e:
            logger.exception(f"Cleanup sweep 실패: {e}")
            return 0
        finally:
            if self.state == WorkerState.SWEEPING:
                self.state = WorkerState.IDLE


def build_cleanup_worker(storage: StorageBackend | None = None) -> CleanupWorker:
    settings = get_settings()
    policy = RetentionPolicy(
        retention_seconds=settings.retention_seconds,
        interval_seconds=settings.cleanup_interval_seconds,
    )
    return CleanupWorker(storage or get_storage(), policy)
