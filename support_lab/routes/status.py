"""
External API status endpoints

- GET /api/status - Probe the external API and record the outcome
- GET /api/status/history - Last 20 probes, newest first
- POST /api/status/notify/{ticket_id} - Send a ticket update webhook
- GET /api/status/test/{code} - Ask the external API for a given status code
"""
import time
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from support_lab.config import Settings
from support_lab.dependencies import get_app_settings, get_status_client, get_status_history
from support_lab.errors import InvalidInput, ProbeTimeout, SupportLabError
from support_lab.services.external_status import (
    ExternalStatusClient,
    StatusHistory,
    StatusHistoryEntry,
)
from support_lab.utils.logger import get_logger
from support_lab.utils.validators import sanitize_input

logger = get_logger(__name__)

router = APIRouter(prefix="/api/status", tags=["status"])


class HistoryResponse(BaseModel):
    count: int
    history: List[StatusHistoryEntry]


class NotifyRequest(BaseModel):
    message: Optional[str] = Field(None, description="Notification text")


@router.get("", response_model=StatusHistoryEntry, responses={503: {"model": StatusHistoryEntry}})
async def check_external_status(
    settings: Settings = Depends(get_app_settings),
    client: ExternalStatusClient = Depends(get_status_client),
    history: StatusHistory = Depends(get_status_history)
):
    """
    Check external service status

    Every outcome (success, non-2xx, timeout, network error) is recorded.
    """
    endpoint = settings.external_api_url
    start = time.time()

    try:
        result = await client.probe(f"{endpoint.rstrip('/')}/status/200", settings.api_timeout_ms)
    except SupportLabError as e:
        duration_ms = int((time.time() - start) * 1000)
        error = "Request timeout" if isinstance(e, ProbeTimeout) else "Network error"
        entry = StatusHistoryEntry(
            status="error",
            response_time_ms=duration_ms,
            endpoint=endpoint,
            error=error,
            success=False
        )
        history.record(entry)
        logger.error(f"External API failed: {error} ({duration_ms}ms)")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=entry.model_dump(mode="json")
        )

    entry = StatusHistoryEntry(
        status="operational" if result.ok else "degraded",
        status_code=result.status_code,
        response_time_ms=result.elapsed_ms,
        endpoint=endpoint,
        success=result.ok
    )
    history.record(entry)
    logger.info(f"External API check: {entry.status} ({result.elapsed_ms}ms)")
    return entry


@router.get("/history", response_model=HistoryResponse)
async def get_history(history: StatusHistory = Depends(get_status_history)):
    """API call history (newest first)"""
    entries = history.snapshot()
    return HistoryResponse(count=len(entries), history=entries)


@router.post("/notify/{ticket_id}")
async def notify_ticket_update(
    ticket_id: str,
    body: Optional[NotifyRequest] = None,
    settings: Settings = Depends(get_app_settings),
    client: ExternalStatusClient = Depends(get_status_client)
):
    """
    Send a ticket update to the external webhook

    Bounded by the configured API timeout; any failure answers 502.
    """
    message = sanitize_input(body.message) if body and body.message else "Ticket updated"
    payload = {
        # Webhook consumers read the camelCase key
        "ticketId": ticket_id,
        "message": message,
        "timestamp": datetime.utcnow().isoformat(),
    }

    error: Optional[str] = None
    response_body: Any = None
    try:
        result = await client.post_json(
            f"{settings.external_api_url.rstrip('/')}/post",
            payload,
            settings.api_timeout_ms
        )
        if not result.ok:
            error = f"Webhook returned {result.status_code}"
        response_body = result.body
    except ProbeTimeout:
        error = "Webhook timeout"
    except SupportLabError as e:
        error = e.detail if settings.is_development and e.detail else e.message

    if error:
        logger.error(f"Notification failed for ticket #{ticket_id}: {error}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"success": False, "error": error, "ticket_id": ticket_id}
        )

    logger.info(f"Notification sent for ticket #{ticket_id}")
    return {"success": True, "ticket_id": ticket_id, "response": response_body}


@router.get("/test/{code}")
async def test_status_code(
    code: int,
    settings: Settings = Depends(get_app_settings),
    client: ExternalStatusClient = Depends(get_status_client)
):
    """Request /status/{code} from the external API and report what came back"""
    if code < 100 or code > 599:
        raise InvalidInput("Invalid status code")

    result = await client.probe(
        f"{settings.external_api_url.rstrip('/')}/status/{code}",
        settings.api_timeout_ms
    )
    return {
        "requested": code,
        "received": result.status_code,
        "ok": result.ok,
        "timestamp": datetime.utcnow().isoformat(),
    }
