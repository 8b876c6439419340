import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import make_asgi_app

from quickbite import __version__
from quickbite.config import settings
from quickbite.database import Base, engine
from quickbite.errors import register_exception_handlers
from quickbite.middleware.metrics import MetricsMiddleware
from quickbite.middleware.request_id import RequestIDMiddleware
from quickbite.routers import menu_items
from quickbite.utils.logging import setup_logging
from quickbite.utils.tracing import setup_tracing

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

if settings.tracing_enabled:
    setup_tracing("quickbite", settings.otlp_endpoint, __version__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up: creating database tables")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.tracing_enabled:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
    logger.info("Startup complete")

    yield

    await engine.dispose()
    logger.info("Shutting down")


app = FastAPI(
    title="QuickBite Menu API",
    description="Restaurant menu item management",
    version=__version__,
    lifespan=lifespan,
)

FastAPIInstrumentor.instrument_app(app)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
register_exception_handlers(app)
app.include_router(menu_items.router, prefix="/api/v1/menu-items", tags=["menu-items"])

# Expose Prometheus metrics at /metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("quickbite.main:app", host="0.0.0.0", port=8000)
