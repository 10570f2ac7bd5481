"""
apphost - HTTP surface

FastAPI application exposing health and the deployment manifest of a
built DistributedApplication.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from apphost import __version__
from apphost.config import get_settings
from apphost.health import HealthStatus
from apphost.hosting import DistributedApplication

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(application: DistributedApplication) -> FastAPI:
    """
    Create the HTTP app for an application host.

    The application is shut down when the HTTP app stops.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting apphost | resources={len(application.resources)}")
        yield
        logger.info("Shutting down apphost...")
        try:
            await application.shutdown()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    settings = application.settings
    app = FastAPI(
        title="apphost",
        description="Declarative resource provisioning for containerized services",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """Root endpoint with service info."""
        return {
            "service": settings.service_name,
            "version": __version__,
            "environment": settings.environment,
            "status": "stopped" if application.is_stopped else "running",
        }

    @app.get("/health", tags=["health"])
    async def health_check() -> JSONResponse:
        """
        Run every registered health check.

        Returns 503 unless all checks are healthy.
        """
        results = await application.check_health()
        healthy = all(r.status == HealthStatus.HEALTHY for r in results)
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": HealthStatus.HEALTHY.value if healthy else HealthStatus.UNHEALTHY.value,
                "checks": [r.to_dict() for r in results],
            },
        )

    @app.get("/resources", tags=["resources"])
    async def list_resources() -> dict[str, Any]:
        """Deployment manifest plus readiness per resource."""
        readiness = {}
        for resource in application.resources:
            coordinator = getattr(resource, "readiness", None)
            if coordinator is not None:
                readiness[resource.name] = coordinator.state.value
        return {
            **application.manifest(),
            "readiness": readiness,
        }

    return app
