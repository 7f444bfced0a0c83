"""
Health check endpoint reporting alert engine state.
"""

import structlog
from fastapi import APIRouter, Depends

from src.alerts.service import AlertService
from src.api.dependencies import get_alert_service
from src.api.models import HealthResponse

router = APIRouter()
logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse, summary="Service health")
async def health(
    service: AlertService = Depends(get_alert_service),
) -> HealthResponse:
    """
    Report engine status.

    The engine is in-memory, so it is healthy whenever the process is up.
    ``degraded`` means no notification channel is configured beyond the
    SMS log stub.
    """
    engine = service.status()
    delivering = [
        name for name, configured in engine["channels"].items()
        if configured and name != "sms"
    ]
    return HealthResponse(
        status="healthy" if delivering else "degraded",
        version=API_VERSION,
        engine=engine,
    )
