"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from pneuma.api.middleware import RequestIDMiddleware, MetricsMiddleware
from pneuma.api.v1 import fixed_costs, rules, summary, transactions
from pneuma.infrastructure.database.session import init_db
from pneuma.infrastructure.observability.logging import setup_logging
from pneuma.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Pneuma",
        description="Buffer-fund allocation and daily spending coach",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(fixed_costs.router, prefix="/v1", tags=["fixed-costs"])
    app.include_router(rules.router, prefix="/v1", tags=["config"])
    app.include_router(summary.router, prefix="/v1", tags=["summary"])

    return app


app = create_app()
