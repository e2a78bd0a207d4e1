"""
Health check endpoints

Provides two endpoints:
- GET /health - Liveness (no dependency calls, never fails)
- GET /health/full - Dependency checks; 200 when healthy, 503 when degraded
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from support_lab.dependencies import get_health_aggregator
from support_lab.services.health import (
    HEALTHY,
    FullHealthResponse,
    HealthAggregator,
    HealthResponse,
)

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns process liveness and uptime without touching dependencies"
)
async def basic_health_check(health: HealthAggregator = Depends(get_health_aggregator)) -> HealthResponse:
    """
    Basic health check endpoint

    Fast response for load balancers. Does not check external dependencies.
    """
    return health.liveness()


@router.get(
    "/full",
    response_model=FullHealthResponse,
    responses={503: {"model": FullHealthResponse, "description": "Store unreachable"}},
    summary="Full health check",
    description="Checks the database and the external API"
)
async def full_health_check(health: HealthAggregator = Depends(get_health_aggregator)):
    """
    Full health check endpoint

    Checks:
    - Database (required): failure makes the service degraded (503)
    - External API (advisory): failure is reported but keeps 200
    """
    report = await health.readiness()
    status_code = status.HTTP_200_OK if report.status == HEALTHY else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=report.model_dump(mode="json"))
