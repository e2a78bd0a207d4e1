"""
Debug endpoints for practicing troubleshooting

Each endpoint simulates one production failure. Mounted only when
enable_debug_endpoints is set. The slow-query and timeout endpoints are
deliberately unbounded.
"""
import asyncio
import json
import os
import platform
import time
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from support_lab.config import Settings
from support_lab.dependencies import get_app_settings, get_database, get_health_aggregator
from support_lab.errors import InvalidInput, StoreFailure
from support_lab.routes.metrics import max_rss_mb
from support_lab.services.database import Database
from support_lab.services.health import HealthAggregator
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/debug", tags=["debug"])

DB_SCENARIOS = {
    "valid": "SELECT NOW() AS time, version() AS version",
    "invalid-query": "SELECT * FORM invalid_table",
    "missing-table": "SELECT * FROM nonexistent_table",
    "long-query": "SELECT pg_sleep(3)",
}

MEGABYTE = 1024 * 1024
CRASH_DELAY_SECONDS = 1.0

# Retained for the life of the process
LEAKED_BLOCKS: List[bytearray] = []


def _crash() -> None:
    logger.critical("Crashing now")
    raise RuntimeError("Intentional crash for debugging practice")


def schedule_crash(loop: asyncio.AbstractEventLoop, delay: float) -> asyncio.TimerHandle:
    """
    Fault the event loop after `delay` seconds

    The error surfaces through the loop exception handler, which the
    lifecycle controller treats as fatal (exit status 1, no drain).
    """
    return loop.call_later(delay, _crash)


@router.get("/slow-query")
async def slow_query(db: Database = Depends(get_database)):
    """Run a 5 second query"""
    logger.info("Executing intentionally slow query...")
    start = time.time()

    await db.execute("debug.slow_query", "SELECT pg_sleep(5)")

    return {
        "message": "Slow query completed",
        "duration_ms": int((time.time() - start) * 1000),
        "warning": "This endpoint intentionally takes 5+ seconds",
    }


@router.get("/error")
async def raise_error():
    """Raise an unhandled exception (answered by the top-level handler)"""
    logger.info("Triggering uncaught exception...")
    raise RuntimeError("Intentional error for debugging practice")


@router.get("/timeout")
async def simulate_timeout(seconds: int = Query(30, ge=0)):
    """Hang for the requested number of seconds"""
    logger.info(f"Simulating {seconds}s timeout...")
    await asyncio.sleep(seconds)
    return {"message": "Timeout simulation complete", "duration_seconds": seconds}


@router.get("/memory-leak")
async def memory_leak(iterations: int = Query(100, ge=0, le=1024)):
    """Allocate `iterations` MB that is never released"""
    logger.info(f"Allocating memory ({iterations} iterations)...")

    for _ in range(iterations):
        # Filled so the pages are actually resident
        LEAKED_BLOCKS.append(bytearray(b"leak" * (MEGABYTE // 4)))

    return {
        "message": "Memory allocated",
        "iterations": iterations,
        "retained_mb": len(LEAKED_BLOCKS),
        "memory": {"max_rss_mb": max_rss_mb()},
        "warning": "This endpoint intentionally leaks memory",
    }


@router.post("/crash")
async def crash():
    """Respond, then fault the process after a short delay"""
    logger.warning(f"CRASH INITIATED - process will exit in {CRASH_DELAY_SECONDS}s")
    schedule_crash(asyncio.get_running_loop(), CRASH_DELAY_SECONDS)

    return {
        "message": "Crash initiated",
        "warning": f"Application will exit in {CRASH_DELAY_SECONDS:g} second(s)",
        "note": "The process supervisor is expected to restart the service",
    }


@router.get("/db-test")
async def db_test(
    scenario: str = "valid",
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings)
):
    """Run one of the canned database scenarios"""
    statement = DB_SCENARIOS.get(scenario)
    if statement is None:
        raise InvalidInput(f"Invalid scenario. Valid scenarios: {', '.join(DB_SCENARIOS)}")

    try:
        rows = await db.execute(f"debug.db_test.{scenario}", statement)
    except StoreFailure as e:
        logger.error(f"DB test ({scenario}) failed: {e.detail}")
        return JSONResponse(
            status_code=500,
            content={
                "scenario": scenario,
                "success": False,
                "error": e.detail if settings.is_development else e.message,
            }
        )

    return {"scenario": scenario, "success": True, "result": rows}


@router.get("/env")
async def environment(
    settings: Settings = Depends(get_app_settings),
    health: HealthAggregator = Depends(get_health_aggregator)
):
    """Environment summary with secrets masked"""
    return {
        "environment": {
            "FASTAPI_ENV": settings.fastapi_env,
            "PORT": settings.port,
            "DATABASE_URL": "***CONFIGURED***" if settings.database_url else "NOT SET",
            "EXTERNAL_API_URL": settings.external_api_url,
            "API_TIMEOUT_MS": settings.api_timeout_ms,
            "ENABLE_DEBUG_ENDPOINTS": settings.enable_debug_endpoints,
            "AWS_S3_BUCKET_NAME": settings.aws_s3_bucket_name or "NOT SET",
        },
        "process": {
            "python_version": platform.python_version(),
            "platform": platform.platform(),
            "uptime": health.uptime(),
            "cwd": os.getcwd(),
        },
    }


@router.post("/malformed-json")
async def malformed_json(request: Request):
    """Parse the raw body and report whether it was valid JSON"""
    raw = (await request.body()).decode("utf-8", errors="replace")
    logger.info(f"Testing malformed JSON handling, received body: {raw[:200]}")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Malformed JSON", "details": str(e)}
        )

    return {"success": True, "message": "JSON was valid", "parsed": parsed}
