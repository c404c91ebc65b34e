"""Health Check MCP Tool

Reports server liveness, uptime and whether the repository is reachable.
"""

import time
from datetime import datetime

import structlog
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.segments_server.instance import VERSION, mcp
from analytics.services.segments_server.state import get_repository
from rfm_segments.storage.repository import SegmentRepository

logger = structlog.get_logger(__name__)

# Track server start time
_SERVER_START_TIME = time.time()


class HealthCheckResponse(BaseModel):
    """Health check response with system status."""

    status: str = Field(description="Overall health status: 'healthy' or 'unhealthy'")
    version: str
    timestamp: str = Field(description="ISO timestamp of health check")
    checks: dict[str, str] = Field(description="Individual component health checks")
    uptime_seconds: float


async def _health_check_impl(
    ctx: Context, repository: SegmentRepository
) -> HealthCheckResponse:
    checks: dict[str, str] = {"mcp_server": "healthy"}
    status = "healthy"

    try:
        # Any cheap read proves the backend answers
        repository.list_uploads("__health_check__")
        checks["repository"] = "healthy"
    except Exception as e:
        checks["repository"] = f"unhealthy: {str(e)}"
        status = "unhealthy"
        logger.error("repository_check_failed", error=str(e))

    uptime_seconds = time.time() - _SERVER_START_TIME
    logger.info("health_check_complete", status=status, checks=checks)

    return HealthCheckResponse(
        status=status,
        version=VERSION,
        timestamp=datetime.now().isoformat(),
        checks=checks,
        uptime_seconds=uptime_seconds,
    )


@mcp.tool()
async def health_check(ctx: Context) -> HealthCheckResponse:
    """
    Check health of the segmentation server and its repository.
    """
    return await _health_check_impl(ctx, get_repository())
