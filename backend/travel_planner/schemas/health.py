"""
Pydantic schemas for health check endpoints.

Defines response models for liveness and readiness checks.
"""

from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Response model for basic health check.

    Attributes:
        status: Health status ("ok" if service is running)
        environment: Deployment environment name
        timestamp: Current UTC timestamp
    """
    status: Literal["ok"] = Field(
        description="Health status indicator"
    )
    environment: str = Field(
        description="Deployment environment"
    )
    timestamp: datetime = Field(
        description="Current UTC timestamp"
    )


class HealthCheckDetail(BaseModel):
    """
    Individual health check result.

    Attributes:
        healthy: Whether this specific check passed
        latency_ms: Time taken to perform the check (optional)
        error: Error message if check failed (optional)
    """
    healthy: bool = Field(
        description="Whether the check passed"
    )
    latency_ms: Optional[float] = Field(
        default=None,
        description="Check execution time in milliseconds"
    )
    error: Optional[str] = Field(
        default=None,
        description="Error message if check failed"
    )


class ReadinessResponse(BaseModel):
    """
    Response model for readiness probe.

    Only the database gates readiness; vendor entries report whether
    credentials are configured.

    Attributes:
        status: Overall readiness status ("ready" if the database is reachable)
        checks: Dictionary of database check results
        vendors: Vendor name -> credentials configured
        timestamp: Current UTC timestamp
    """
    status: Literal["ready", "not_ready"] = Field(
        description="Overall readiness status"
    )
    checks: Dict[str, HealthCheckDetail] = Field(
        description="Individual dependency checks"
    )
    vendors: Dict[str, bool] = Field(
        description="Vendor integrations with configured credentials"
    )
    timestamp: datetime = Field(
        description="Current UTC timestamp"
    )
