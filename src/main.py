import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.config import get_settings
from src.infra.logging_config import setup_logging
from src.infra.redis import close_redis
from src.infra.storage import get_storage
from src.infra.storage.local import LocalDiskStorage
from src.routes.config import router as config_router
from src.routes.files import router as files_router
from src.services.cleanup import CleanupWorker, build_cleanup_worker

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    storage = get_storage()
    logger.info(f"Storage 백엔드: {settings.storage_type} ({type(storage).__name__})")
    if isinstance(storage, LocalDiskStorage):
        storage.ensure_root()

    worker: CleanupWorker | None = None
    # CLEANUP_SCHEDULER=celery 이면 beat가 sweep을 담당
    if settings.cleanup_scheduler == "inline":
        worker = build_cleanup_worker(storage)
        worker.start()

    yield

    if worker is not None:
        worker.stop()
    close_redis()


app = FastAPI(title="xtemp", lifespan=lifespan)

# /config/* 가 /{handle}/{filepath} 보다 먼저 매칭되어야 함
app.include_router(config_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(files_router)
