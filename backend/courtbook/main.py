# backend/courtbook/main.py
"""
FastAPI entrypoint for the court booking service.

    uvicorn courtbook.main:app --app-dir backend
"""

import logging

from fastapi import APIRouter, FastAPI, Response

from .core.config import settings
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    bookings as bookings_v1,
    courts as courts_v1,
    joins as joins_v1,
    promotions as promotions_v1,
    rewards as rewards_v1,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Courtbook API"
API_VERSION = "1.0.0"

app = FastAPI(title=API_TITLE, version=API_VERSION, docs_url="/docs", redoc_url="/redoc")

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(courts_v1.router, prefix="/courts")
api_v1.include_router(joins_v1.router, prefix="/joins")
api_v1.include_router(promotions_v1.router, prefix="/promotions")
api_v1.include_router(rewards_v1.router, prefix="/rewards")
app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health_check() -> dict:
    return {"status": "healthy", "service": "courtbook-api", "environment": settings.environment}


@app.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


logger.info("Courtbook API configured", extra={"environment": settings.environment})
