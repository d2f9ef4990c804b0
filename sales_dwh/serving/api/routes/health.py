"""
Health Check Endpoints

Reports whether the gold layer is servable and, when a warehouse database
has been initialized, whether it is reachable.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from sales_dwh.config import get_settings
from sales_dwh.database.connection import check_database_health, get_engine
from sales_dwh.serving.api.dependencies import get_store
from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.transformers import Layer

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def _gold_check(store: LayerStore) -> Dict[str, Any]:
    if not store.has_layer(Layer.GOLD):
        return {"status": "unavailable", "reason": "gold layer has not been built"}
    manifest = store.manifest(Layer.GOLD)
    return {"status": "healthy", "written_at": manifest["written_at"], "tables": manifest["tables"]}


@router.get("/health", response_model=HealthResponse)
def health_check(store: LayerStore = Depends(get_store)) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Gold layer availability
    - Warehouse database connectivity (only once initialized)
    """
    settings = get_settings()
    checks: Dict[str, Any] = {"gold_layer": _gold_check(store)}
    overall_status = "healthy" if checks["gold_layer"]["status"] == "healthy" else "degraded"

    try:
        get_engine()
    except RuntimeError:
        checks["database"] = {"status": "not_initialized"}
    else:
        checks["database"] = check_database_health()
        if checks["database"].get("status") != "healthy":
            overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get("/health/live")
def liveness_check() -> Dict[str, str]:
    """Returns 200 while the process is running."""
    return {"status": "alive"}


@router.get("/health/ready")
def readiness_check(response: Response, store: LayerStore = Depends(get_store)) -> Dict[str, str]:
    """Returns 200 once there is a gold layer to serve."""
    if not store.has_layer(Layer.GOLD):
        response.status_code = 503
        return {"status": "not_ready", "reason": "gold_layer_unavailable"}
    return {"status": "ready"}
