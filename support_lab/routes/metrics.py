"""
Metrics API routes
"""
import resource
import sys
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from support_lab.dependencies import get_health_aggregator, get_ticket_repository
from support_lab.models.schemas import TicketSummary
from support_lab.repositories.ticket_repository import TicketRepository
from support_lab.services.health import HealthAggregator

router = APIRouter(prefix="/metrics", tags=["metrics"])


class MemoryUsage(BaseModel):
    max_rss_mb: float = Field(..., description="Peak resident set size in MB")


class MetricsResponse(BaseModel):
    """Metrics response model"""
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    uptime_seconds: int
    memory: MemoryUsage
    tickets: TicketSummary


def max_rss_mb() -> float:
    # ru_maxrss is bytes on macOS and kilobytes on Linux
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(rss / divisor, 1)


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    repo: TicketRepository = Depends(get_ticket_repository),
    health: HealthAggregator = Depends(get_health_aggregator)
):
    """
    Get application metrics

    Metrics:
    - Process uptime and peak memory
    - Ticket totals (all, open, resolved)
    - Mean resolution time and most recent creation
    """
    summary = await repo.get_summary()
    return MetricsResponse(
        uptime_seconds=int(health.uptime()),
        memory=MemoryUsage(max_rss_mb=max_rss_mb()),
        tickets=summary
    )
