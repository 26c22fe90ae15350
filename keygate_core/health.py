"""
Health Check
============
Unauthenticated health endpoints with the status of the item store.
"""

import time
from enum import Enum
from typing import Dict, Optional

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .exceptions import StorageError
from .storage import JsonItemStore

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: HealthStatus
    service: str
    version: str
    components: Dict[str, ComponentHealth] = {}
    timestamp: float


def check_item_store(store: JsonItemStore) -> ComponentHealth:
    """Check that the item store file can be read."""
    start = time.time()
    try:
        store.list_ids()
    except StorageError as e:
        logger.error("storage_health_check_failed", error=e.message)
        return ComponentHealth(status="error", error=e.reason)
    latency = (time.time() - start) * 1000
    return ComponentHealth(status="ok", latency_ms=round(latency, 2))


def create_health_router(
    service_name: str,
    version: str,
    item_store: Optional[JsonItemStore] = None,
) -> APIRouter:
    """
    Create the health router.

    Args:
        service_name: Name reported in the response
        version: Service version
        item_store: Store to probe (optional)

    Returns:
        FastAPI router with /health and /health/live
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    def health_check():
        components: Dict[str, ComponentHealth] = {}
        status = HealthStatus.HEALTHY

        if item_store is not None:
            components["storage"] = check_item_store(item_store)
            if components["storage"].status == "error":
                status = HealthStatus.UNHEALTHY

        body = HealthResponse(
            status=status,
            service=service_name,
            version=version,
            components=components,
            timestamp=time.time(),
        )
        if status == HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
        return body

    @router.get("/health/live")
    def liveness_probe():
        """Always 200 while the process is serving."""
        return {"status": "alive"}

    return router
