from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from app.api.dependencies import get_app_settings, get_service_metrics
from app.config import Settings
from app.observability.metrics import ServiceMetrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(
    settings: Settings = Depends(get_app_settings),
    service_metrics: ServiceMetrics = Depends(get_service_metrics),
) -> Response:
    if not settings.enable_metrics_endpoint:
        raise HTTPException(status_code=404, detail="Not found")
    return Response(content=service_metrics.render(), media_type=service_metrics.content_type)
