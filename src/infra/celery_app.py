from celery import Celery

from src.config import get_settings
from src.constants import TTL
from src.infra.logging_config import setup_logging

settings = get_settings()
setup_logging(settings.log_level)

celery_app = Celery(
    "xtemp",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    result_expires=TTL.CELERY_RESULT,
    imports=["src.infra.workers.cleanup_job"],
    worker_prefetch_multiplier=1,
)

# CLEANUP_SCHEDULER=celery 일 때만 beat가 sweep을 담당 (API 프로세스는 스레드를 띄우지 않음)
if (
    settings.cleanup_scheduler == "celery"
    and settings.retention_seconds > 0
    and settings.cleanup_interval_seconds > 0
):
    celery_app.conf.beat_schedule = {
        "cleanup-expired": {
            "task": "src.infra.workers.cleanup_job.cleanup_job",
            "schedule": float(settings.cleanup_interval_seconds),
        },
    }
