"""FastAPI application factory"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from practice_ledger.api.errors import register_error_handlers
from practice_ledger.api.middleware import MetricsMiddleware, RequestIDMiddleware
from practice_ledger.api.v1 import accounts, cards, functions
from practice_ledger.config import settings
from practice_ledger.infrastructure.observability.logging import setup_logging
from practice_ledger.services.recurring import DailyRunGuard


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Practice Ledger",
        description="Credit card invoices, balances and recurring patient payments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.daily_run_guard = DailyRunGuard()

    # Last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey"],
    )

    register_error_handlers(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "store": settings.store_backend}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(functions.router, prefix="/functions/v1", tags=["functions"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])

    return app


app = create_app()
