"""
Health Aggregator

Combines the liveness signal with dependency checks:
- Store check (critical): failure degrades the aggregate status
- External API check (advisory): failure is reported but never degrades
"""
import asyncio
import time
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from support_lab.errors import ProbeTimeout, SupportLabError
from support_lab.services.database import Database
from support_lab.services.external_status import ExternalStatusClient
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
DEGRADED = "degraded"


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Always healthy while the process runs")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    uptime: float = Field(..., description="Process uptime in seconds")


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str = Field(..., description="Dependency name")
    status: str = Field(..., description="Status: healthy or unhealthy")
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    error_message: Optional[str] = Field(None, description="Failure classification if unhealthy")


class FullHealthResponse(BaseModel):
    """Aggregate health with per-dependency checks"""
    status: str = Field(..., description="Overall status: healthy or degraded")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    uptime: float = Field(..., description="Process uptime in seconds")
    checks: Dict[str, DependencyStatus] = Field(..., description="Individual dependency statuses")


# ============================================================================
# Aggregator
# ============================================================================

class HealthAggregator:
    """Read-only health checks over the store and the external API"""

    def __init__(
        self,
        database: Database,
        status_client: ExternalStatusClient,
        external_api_url: str,
        probe_timeout_ms: int,
        started_at: Optional[float] = None
    ):
        self.database = database
        self.status_client = status_client
        self.external_api_url = external_api_url.rstrip("/")
        self.probe_timeout_ms = probe_timeout_ms
        self.started_at = started_at if started_at is not None else time.time()

    def uptime(self) -> float:
        return round(time.time() - self.started_at, 2)

    def liveness(self) -> HealthResponse:
        """
        Process liveness

        Touches neither the store nor the network.
        """
        return HealthResponse(status=HEALTHY, uptime=self.uptime())

    async def check_database(self) -> DependencyStatus:
        """Issue a trivial read against the store"""
        start = time.time()
        try:
            rows = await self.database.execute("health.check", "SELECT 1 AS health_check")
        except SupportLabError as e:
            logger.error(f"Database check failed: {e.detail or e.message}")
            return DependencyStatus(name="database", status=UNHEALTHY, error_message="store_failure")

        if not rows:
            return DependencyStatus(name="database", status=UNHEALTHY, error_message="empty_result")

        return DependencyStatus(
            name="database",
            status=HEALTHY,
            latency_ms=round((time.time() - start) * 1000, 2)
        )

    async def check_external_api(self) -> DependencyStatus:
        """Bounded-timeout probe of the external API"""
        try:
            result = await self.status_client.probe(
                f"{self.external_api_url}/status/200",
                self.probe_timeout_ms
            )
        except ProbeTimeout:
            logger.error(f"External API check timed out after {self.probe_timeout_ms}ms")
            return DependencyStatus(name="external_api", status=UNHEALTHY, error_message="timeout")
        except SupportLabError as e:
            logger.error(f"External API check failed: {e.detail or e.message}")
            return DependencyStatus(name="external_api", status=UNHEALTHY, error_message="network_error")

        if not result.ok:
            return DependencyStatus(
                name="external_api",
                status=UNHEALTHY,
                latency_ms=float(result.elapsed_ms),
                error_message=f"http_{result.status_code}"
            )

        return DependencyStatus(name="external_api", status=HEALTHY, latency_ms=float(result.elapsed_ms))

    async def readiness(self) -> FullHealthResponse:
        """
        Run both dependency checks in parallel and aggregate

        Aggregate is healthy only if the store check passed.
        """
        database, external_api = await asyncio.gather(
            self.check_database(),
            self.check_external_api()
        )

        overall = HEALTHY if database.status == HEALTHY else DEGRADED
        if overall != HEALTHY:
            logger.warning("Health check degraded: database unhealthy")

        return FullHealthResponse(
            status=overall,
            uptime=self.uptime(),
            checks={"database": database, "external_api": external_api}
        )
