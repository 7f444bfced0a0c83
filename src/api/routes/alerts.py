"""Alert engine endpoints: listing, stats, evaluation, and administration."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from src.alerts.schemas import VALID_SEVERITIES
from src.alerts.service import AlertService
from src.api.auth import verify_api_key
from src.api.dependencies import get_alert_service
from src.api.models import (
    AlertItem,
    AlertsResponse,
    AlertStatsResponse,
    ChannelTestRequest,
    ChannelTestResponse,
    ClearAlertsResponse,
    ErrorResponse,
    EvaluateRequest,
    RemoveAlertResponse,
    ThresholdsResponse,
    ThresholdsUpdateRequest,
    TriggerAlertRequest,
    TriggerAlertResponse,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


def _validate_severity(severity: str | None) -> None:
    if severity and severity not in VALID_SEVERITIES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=(
                f"Invalid severity {severity!r}. "
                f"Must be one of: {sorted(VALID_SEVERITIES)}"
            ),
        )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


@router.get(
    "/alerts",
    response_model=AlertsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Invalid filter parameter"},
    },
    summary="List active alerts",
    description="Alerts currently in the active list, oldest first.",
)
async def list_alerts(
    type: str | None = Query(default=None, description="Filter by alert type"),
    severity: str | None = Query(
        default=None,
        description="Filter by severity: critical, warning, info",
    ),
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum alerts to return"),
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertsResponse:
    start_time = time.perf_counter()
    _validate_severity(severity)

    alerts = service.get_current_alerts(alert_type=type, severity=severity, limit=limit)
    items = [AlertItem.from_alert(a) for a in alerts]

    latency_ms = _elapsed_ms(start_time)
    logger.info(
        "Active alerts listed",
        total=len(items),
        type=type,
        severity=severity,
        latency_ms=latency_ms,
    )
    return AlertsResponse(alerts=items, total=len(items), latency_ms=latency_ms)


@router.get(
    "/alerts/history",
    response_model=AlertsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Invalid filter parameter"},
    },
    summary="Alert history",
    description=(
        "Most recent history entries (the last ``limit``), then filtered "
        "by type, severity, and time range."
    ),
)
async def alert_history(
    limit: int = Query(default=100, ge=1, le=1000, description="History tail size"),
    type: str | None = Query(default=None, description="Filter by alert type"),
    severity: str | None = Query(default=None, description="Filter by severity"),
    start: datetime | None = Query(default=None, description="Earliest timestamp (ISO)"),
    end: datetime | None = Query(default=None, description="Latest timestamp (ISO)"),
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertsResponse:
    start_time = time.perf_counter()
    _validate_severity(severity)

    history = service.get_alert_history(
        limit=limit,
        alert_type=type,
        severity=severity,
        start=_as_utc(start),
        end=_as_utc(end),
    )
    items = [AlertItem.from_alert(a) for a in history]
    return AlertsResponse(
        alerts=items,
        total=len(items),
        latency_ms=_elapsed_ms(start_time),
    )


@router.get(
    "/alerts/stats",
    response_model=AlertStatsResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Alert statistics",
)
async def alert_stats(
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertStatsResponse:
    return AlertStatsResponse(**service.get_alert_stats())


@router.post(
    "/alerts/evaluate",
    response_model=AlertsResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Evaluate a metric snapshot",
    description=(
        "Check a snapshot against the current thresholds. Returns every "
        "alert produced, including ones suppressed as duplicates."
    ),
)
async def evaluate_snapshot(
    request: EvaluateRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> AlertsResponse:
    start_time = time.perf_counter()

    alerts = await service.evaluate(request.metrics)
    items = [AlertItem.from_alert(a) for a in alerts]

    latency_ms = _elapsed_ms(start_time)
    logger.info("Snapshot evaluated", alerts=len(items), latency_ms=latency_ms)
    return AlertsResponse(alerts=items, total=len(items), latency_ms=latency_ms)


@router.post(
    "/alerts/trigger",
    response_model=TriggerAlertResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Invalid request body"},
    },
    summary="Trigger a manual alert",
    description="Raise an alert directly. Subject to the 5 minute dedup window.",
)
async def trigger_alert(
    request: TriggerAlertRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> TriggerAlertResponse:
    start_time = time.perf_counter()

    try:
        alert = await service.trigger_manual_alert(
            request.type,
            request.message,
            severity=request.severity,
            data=request.data,
        )
    except (TypeError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    logger.info("Manual alert triggered", type=alert.type, severity=alert.severity)
    return TriggerAlertResponse(
        alert=AlertItem.from_alert(alert),
        latency_ms=_elapsed_ms(start_time),
    )


@router.get(
    "/alerts/thresholds",
    response_model=ThresholdsResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Current thresholds",
)
async def get_thresholds(
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> ThresholdsResponse:
    return ThresholdsResponse(thresholds=service.get_thresholds())


@router.put(
    "/alerts/thresholds",
    response_model=ThresholdsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Unknown dimension"},
    },
    summary="Update thresholds",
    description="Merge new threshold values; omitted dimensions keep their value.",
)
async def update_thresholds(
    request: ThresholdsUpdateRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> ThresholdsResponse:
    try:
        thresholds = service.update_thresholds(request.thresholds)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    logger.info("Thresholds updated", thresholds=thresholds)
    return ThresholdsResponse(thresholds=thresholds)


@router.delete(
    "/alerts/clear",
    response_model=ClearAlertsResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Prune resolved alerts",
    description="Remove active alerts older than 24 hours.",
)
async def clear_alerts(
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> ClearAlertsResponse:
    before = len(service.get_current_alerts())
    removed = service.clear_resolved_alerts()
    return ClearAlertsResponse(before=before, after=before - removed, removed=removed)


@router.post(
    "/alerts/test",
    response_model=ChannelTestResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Channel not registered"},
    },
    summary="Send a test notification",
    description="Deliver a synthetic info alert through one channel.",
)
async def send_channel_test(
    request: ChannelTestRequest,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> ChannelTestResponse:
    try:
        result = await service.send_test_notification(request.channel)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel not registered: {request.channel}",
        )

    logger.info("Test notification sent", channel=result.channel, status=result.status)
    return ChannelTestResponse(
        channel=result.channel,
        status=result.status,
        error=result.error,
    )


@router.delete(
    "/alerts/{alert_id}",
    response_model=RemoveAlertResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Alert not found"},
    },
    summary="Remove an active alert",
)
async def remove_alert(
    alert_id: str,
    api_key: str = Depends(verify_api_key),
    service: AlertService = Depends(get_alert_service),
) -> RemoveAlertResponse:
    removed = service.remove_alert(alert_id)
    if removed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert not found: {alert_id}",
        )
    return RemoveAlertResponse(alert_id=alert_id, removed=True)
