"""Main application entrypoint for the File Drop relay."""

import logging
import os

from fastapi import FastAPI

from filedrop.api.v1 import routes_events, routes_health
from filedrop.core.config import settings
from filedrop.core.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description="Receives Cloud Storage notifications for the file drop bucket and forwards arrivals to consumers",
        version=settings.SERVICE_VERSION,
    )

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_events.router, tags=["events"])

    @app.on_event("startup")
    async def startup_event():
        """Load the routing table eagerly so a bad configuration fails the start."""
        processor = routes_events.get_event_processor()
        logger.info(
            "Event processor started",
            extra={
                "environment": settings.ENV,
                "bucket": processor.config.bucket_name,
                "routes": [route.path for route in processor.config.routes],
                "storage_backend": processor.store.get_backend_name(),
            },
        )

    return app


# Export app instance for ASGI servers
app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run(app, host="0.0.0.0", port=port)
