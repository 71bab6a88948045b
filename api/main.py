"""FastAPI backend for the newsletter generation engine."""

from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from api.error_handlers import register_error_handlers
from api.middleware import MetricsMiddleware, get_metrics, get_metrics_content_type
from api.routes import health, ws
from api.routes.v1 import generations_router, voice_profiles_router, webhooks_router
from newsletter import config
from newsletter.bootstrap import Services, build_services
from newsletter.logging import configure_structlog


def create_app(
    services: Optional[Services] = None,
    callback_secret: Optional[str] = config.CALLBACK_SECRET,
) -> FastAPI:
    """Build the application.

    Args:
        services: Pre-built services (tests); built from configuration otherwise
        callback_secret: Secret the workflow callback must present, if any
    """
    configure_structlog(
        json_format=config.LOG_FORMAT == "json",
        log_level=config.LOG_LEVEL,
    )

    app = FastAPI(
        title="Newsletter Engine API",
        description="Voice profiles and newsletter generation lifecycle",
        version="1.0.0",
    )
    app.state.services = services or build_services()
    app.state.callback_secret = callback_secret

    # Middleware is added in reverse order of execution: CORS -> Metrics -> Route
    app.add_middleware(MetricsMiddleware)

    # CORS for the web client (outermost - handles preflight requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(voice_profiles_router, prefix="/api", tags=["voice-profiles"])
    app.include_router(generations_router, prefix="/api", tags=["generations"])
    app.include_router(webhooks_router, prefix="/api", tags=["webhooks"])
    app.include_router(ws.router, prefix="/api/ws", tags=["websocket"])

    # Health check routes (no auth required)
    app.include_router(health.router, prefix="/api", tags=["health"])

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint for scraping."""
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    return app


app = create_app()
