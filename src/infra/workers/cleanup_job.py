"""만료 파일 정리 태스크

CLEANUP_SCHEDULER=celery 설정 시 beat가 interval마다 큐잉한다.
"""

import logging
from typing import Any

from src.infra.celery_app import celery_app
from src.services.cleanup import build_cleanup_worker

logger = logging.getLogger(__name__)


@celery_app.task(soft_time_limit=600, time_limit=660)
def cleanup_job() -> dict[str, Any]:
    """sweep 1회 실행

    오류는 CleanupWorker.run_once 내부에서 로그로 남기고 0으로 처리되므로
    태스크 자체는 실패하지 않는다.
    """
    worker = build_cleanup_worker()
    removed = worker.run_once()
    logger.info(f"cleanup_job 완료: {removed}개 삭제")
    return {"removed": removed}
