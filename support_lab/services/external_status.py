"""
External Status Gateway

Bounded-timeout outbound calls to the external status API, plus the
in-memory history of status probes.
"""
import time
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from support_lab.errors import NetworkFailure, ProbeTimeout
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)

MAX_HISTORY = 20


class ProbeResult(BaseModel):
    """Outcome of a completed outbound request"""
    status_code: int
    elapsed_ms: int
    body: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class StatusHistoryEntry(BaseModel):
    """One external-status check"""
    status: str = Field(..., description="operational, degraded or error")
    status_code: Optional[int] = Field(None, description="HTTP status received")
    response_time_ms: int = Field(..., ge=0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    endpoint: str
    error: Optional[str] = None
    success: bool


class StatusHistory:
    """
    Bounded newest-first history of status probes

    The deque evicts the oldest entry on append once full. Only the event
    loop thread mutates it.
    """

    def __init__(self, capacity: int = MAX_HISTORY):
        self.capacity = capacity
        self._entries: Deque[StatusHistoryEntry] = deque(maxlen=capacity)

    def record(self, entry: StatusHistoryEntry) -> None:
        self._entries.appendleft(entry)

    def snapshot(self) -> List[StatusHistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class ExternalStatusClient:
    """
    httpx-based outbound client

    Every call is bounded by the timeout it is given. Timeouts raise
    ProbeTimeout; any other transport failure raises NetworkFailure.
    Non-2xx responses are returned, not raised.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._transport = transport

    async def _request(
        self,
        method: str,
        url: str,
        timeout_ms: Optional[int],
        **kwargs
    ) -> ProbeResult:
        timeout = timeout_ms / 1000 if timeout_ms is not None else None
        start = time.time()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {url} timed out after {timeout_ms}ms")
            raise ProbeTimeout("Request timeout", detail=str(e)) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkFailure("Request failed", detail=str(e) or type(e).__name__) from e

        elapsed_ms = int((time.time() - start) * 1000)

        body: Optional[Any] = None
        if "json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                body = None

        return ProbeResult(status_code=response.status_code, elapsed_ms=elapsed_ms, body=body)

    async def probe(self, url: str, timeout_ms: Optional[int]) -> ProbeResult:
        """
        GET a URL with a bounded wait

        Args:
            url: Absolute URL to check
            timeout_ms: Upper bound in milliseconds (None disables the bound)

        Returns:
            ProbeResult with the received status code

        Raises:
            ProbeTimeout: The bound elapsed
            NetworkFailure: Connection or protocol failure
        """
        return await self._request("GET", url, timeout_ms)

    async def post_json(self, url: str, payload: Dict[str, Any], timeout_ms: Optional[int]) -> ProbeResult:
        """POST a JSON payload with a bounded wait (same error contract as probe)"""
        return await self._request("POST", url, timeout_ms, json=payload)
