import asyncio
import logging
import os
import platform
import signal
import subprocess
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI

from app.core.config import settings
from app.core.middleware import apply_cors, apply_exception_handlers
from app.routes import api_router, health_router
from app.utils.pricing_calculator import validate_pricing_config

logger = logging.getLogger(__name__)

CELERY_QUEUES = "default,price_sync,shopify_push,stock_check"
IS_WINDOWS = platform.system() == "Windows"

# Worker and beat spawned by the lifespan; stopped on shutdown
_celery_processes: List[subprocess.Popen] = []


def _spawn_celery(label: str, *args: str) -> Optional[subprocess.Popen]:
    """Run ``celery -A app.celery_app <args>`` from the project root."""
    popen_kwargs = {"cwd": os.path.dirname(os.path.dirname(os.path.abspath(__file__)))}
    if IS_WINDOWS:
        # New process group so terminate() reaches the worker's children
        popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

    try:
        process = subprocess.Popen(
            [sys.executable, "-m", "celery", "-A", "app.celery_app", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            **popen_kwargs,
        )
    except OSError as e:
        logger.error(f"Could not start Celery {label}: {e}")
        return None

    logger.info(f"Celery {label} started (PID: {process.pid})")
    _celery_processes.append(process)
    return process


def _stop(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        return
    logger.info(f"Stopping Celery process {process.pid}")
    if IS_WINDOWS:
        process.terminate()
    else:
        process.send_signal(signal.SIGTERM)
    try:
        process.wait(timeout=10)
    except subprocess.TimeoutExpired:
        logger.warning(f"Celery process {process.pid} ignored SIGTERM, killing")
        process.kill()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: log any inconsistent pricing constants, then (unless
    AUTO_START_CELERY=false) spawn a worker for every queue and, when
    scheduled jobs are enabled, Celery Beat. Shutdown: stop both.
    """
    logger.info("=== Command Center Starting ===")

    for problem in validate_pricing_config():
        logger.error(f"pricing config: {problem}")

    if settings.auto_start_celery:
        pool = "solo" if IS_WINDOWS else "prefork"
        _spawn_celery("worker", "worker", f"--pool={pool}", "-Q", CELERY_QUEUES, "-l", "info", "--concurrency=2")
        if settings.price_sync_enabled:
            # Let the worker bind its queues before the first beat tick
            await asyncio.sleep(2)
            _spawn_celery("beat", "beat", "-l", "info")
        else:
            logger.info("PRICE_SYNC_ENABLED=false; Celery Beat not started")
    else:
        logger.info("Celery auto-start disabled (AUTO_START_CELERY=false)")

    logger.info("=== Command Center Ready ===")

    yield

    logger.info("=== Command Center Shutting Down ===")
    for process in _celery_processes:
        _stop(process)
    _celery_processes.clear()


app = FastAPI(title="Dropship Command Center Backend", lifespan=lifespan)
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

apply_cors(app)
apply_exception_handlers(app)

app.include_router(health_router)
app.include_router(api_router)
