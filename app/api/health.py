from __future__ import annotations

import random
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_app_settings
from app.config import Settings
from app.models.schemas import HealthResponse

router = APIRouter(tags=["health"])

SIMULATED_ERROR_STATUSES = (400, 401, 403, 404, 500, 502, 503)


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).replace(microsecond=0),
        service=settings.service_name,
    )


@router.get("/simulate-error")
async def simulate_error() -> None:
    """Fail with a random client or server error status (for dashboards)."""
    status_code = random.choice(SIMULATED_ERROR_STATUSES)
    raise HTTPException(status_code=status_code, detail=f"Simulated error with status {status_code}")
