"""
FastAPI application entry point.

Run with: uvicorn okr_coach.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from okr_coach import __version__
from okr_coach.api.exception_handlers import setup_exception_handlers
from okr_coach.api.routes import health, scoring, sessions
from okr_coach.core.config import settings
from okr_coach.core.logging import bind_context, clear_context, configure_logging, get_logger
from okr_coach.persistence.database import init_database

log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Binds a request_id to the structlog context for every request and
    returns it in the X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        bind_context(request_id=request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Configures logging and applies the database schema on startup.
    """
    log_file = configure_logging()
    log.info(
        "application_starting",
        debug=settings.debug,
        database_path=str(settings.database_path),
        log_file=str(log_file),
    )

    await init_database(settings.database_path)

    log.info("application_started")

    yield

    log.info("application_shutting_down")


app = FastAPI(
    title="OKR Coach",
    description="Conversational OKR coaching: phase state machine and content scoring",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(sessions.router)
app.include_router(scoring.router)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "OKR Coach", "version": __version__, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "okr_coach.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
