"""
Health check route.
"""
import logging

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool

from ephemeral_paste.database import get_store
from ephemeral_paste.errors import StorageError
from ephemeral_paste.models import HealthCheck

router = APIRouter()
logger = logging.getLogger(__name__)


def _store_is_healthy() -> bool:
    try:
        store = get_store()
    except StorageError as e:
        logger.error(f"Health check failed: {e}")
        return False
    return store.health_check()


@router.get("/api/healthz", response_model=HealthCheck)
async def health_check() -> HealthCheck:
    """
    Health check endpoint.
    Returns 200 with ok=true if application and database are healthy.
    """
    is_healthy = await run_in_threadpool(_store_is_healthy)
    return HealthCheck(ok=is_healthy)
