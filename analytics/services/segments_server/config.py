"""Runtime configuration for the segmentation server.

All settings come from environment variables so the same image can run
in development and production.
"""

import os

from pydantic import BaseModel, Field

DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024


class ServerSettings(BaseModel):
    """Environment-driven server settings."""

    environment: str = Field(default="development", description="Deployment environment")
    otlp_endpoint: str | None = Field(
        default=None, description="OTLP gRPC endpoint; console export when unset"
    )
    sampling_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    metrics_port: int = Field(default=8000, description="Prometheus metrics HTTP port")
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)

    @classmethod
    def from_env(cls) -> "ServerSettings":
        """Build settings from ENVIRONMENT, OTLP_ENDPOINT, SAMPLING_RATE,
        PROMETHEUS_METRICS_PORT and MAX_UPLOAD_BYTES."""
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            otlp_endpoint=os.getenv("OTLP_ENDPOINT") or None,
            sampling_rate=float(os.getenv("SAMPLING_RATE", "1.0")),
            metrics_port=int(os.getenv("PROMETHEUS_METRICS_PORT", "8000")),
            max_upload_bytes=int(
                os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
            ),
        )
