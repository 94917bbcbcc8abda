"""
Health check endpoints for monitoring and readiness probes.

This module provides endpoints for:
- Liveness probe: /health (basic "is the server running" check)
- Readiness probe: /health/ready (database connectivity plus vendor configuration)
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status

from travel_planner.core.config import settings
from travel_planner.core.probes import check_database, check_vendor_configuration
from travel_planner.schemas.health import HealthCheckDetail, HealthResponse, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Basic health check to verify the service is running",
)
async def health_check() -> HealthResponse:
    """
    Basic liveness probe.

    This endpoint should always return 200 if the application is running.

    Example response:
        {
            "status": "ok",
            "environment": "development",
            "timestamp": "2025-11-24T10:30:00.123456+00:00"
        }
    """
    return HealthResponse(
        status="ok",
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Database connectivity and vendor configuration",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """
    Readiness probe with dependency checks.

    Returns 200 when the database answers, 503 otherwise. Vendors without
    credentials are reported but do not fail readiness.

    Example response:
        {
            "status": "ready",
            "checks": {"db": {"healthy": true, "latency_ms": 1.8}},
            "vendors": {"llm": true, "voice": false, "map": true},
            "timestamp": "2025-11-24T10:30:00.123456+00:00"
        }
    """
    db_start = time.monotonic()
    db_healthy = await check_database()
    db_latency = (time.monotonic() - db_start) * 1000

    checks = {
        "db": HealthCheckDetail(
            healthy=db_healthy,
            latency_ms=round(db_latency, 2),
            error=None if db_healthy else "Database connection failed or timed out",
        ),
    }

    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if db_healthy else "not_ready",
        checks=checks,
        vendors=check_vendor_configuration(),
        timestamp=datetime.now(timezone.utc),
    )
