"""
RFM Customer Segmentation MCP Server

This module provides the main MCP server: structured logging, observability
setup in the lifespan, and registration of the segmentation tools.
"""

import logging
import sys
from contextlib import asynccontextmanager

import structlog

# Configure structlog to write to stderr, not stdout (to avoid interfering with MCP JSON protocol)
logging.basicConfig(
    format="%(message)s",
    stream=sys.stderr,
    level=logging.INFO,
)

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def app_lifespan(app):
    """Initialize and cleanup MCP server resources."""
    from analytics.services.segments_server.config import ServerSettings
    from analytics.services.segments_server.metrics import start_metrics_server
    from analytics.services.segments_server.observability import configure_observability

    settings = ServerSettings.from_env()
    logger.info(
        "mcp_server_starting",
        version=VERSION,
        environment=settings.environment,
    )

    configure_observability(settings)

    try:
        start_metrics_server(port=settings.metrics_port)
    except RuntimeError as e:
        # Server already running (e.g., during hot reload)
        logger.warning("prometheus_metrics_server_already_running", error=str(e))
    except OSError as e:
        logger.error(
            "prometheus_metrics_server_failed", error=str(e), port=settings.metrics_port
        )

    yield

    logger.info("mcp_server_stopping")


# Import MCP server instance (must be imported before tools to avoid circular imports)
from analytics.services.segments_server.instance import VERSION, mcp  # noqa: E402

# Configure lifespan
mcp.lifespan = app_lifespan

# These imports MUST happen before mcp.run() is called
# Each module registers its tools using the @mcp.tool() decorator
from analytics.services.segments_server.tools import (  # noqa: E402, F401
    health_check,
    segments,
    upload,
)

logger.info(
    "mcp_server_initialized",
    tools_registered=5,
)


def run() -> None:
    """Run the server over stdio."""
    mcp.run()


if __name__ == "__main__":
    run()
