"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from recouply_assessment.api.middleware import RequestIDMiddleware, MetricsMiddleware
from recouply_assessment.api.v1 import assessment, leads, share
from recouply_assessment.infrastructure.database.session import init_db
from recouply_assessment.infrastructure.observability.logging import setup_logging
from recouply_assessment.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Recouply Collections Assessment",
        description="Deterministic collections risk & ROI assessment service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(assessment.router, prefix="/v1", tags=["assessment"])
    app.include_router(leads.router, prefix="/v1", tags=["leads"])
    app.include_router(share.router, prefix="/v1", tags=["share"])

    return app


app = create_app()
