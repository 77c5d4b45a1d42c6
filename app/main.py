"""
FastAPI application entry point — draft review API and UI.

Configures middleware, lifespan events, and mounts all routers.
Run locally: uvicorn app.main:app --reload
Production:  gunicorn app.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from app.api.v1.routes import drafts, health
from app.core.config import get_settings
from app.core.logging import get_logger, setup_logging
from app.models.database import create_engine, create_session_factory, init_models
from app.web import drafts as review_pages

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the connection pool for the lifetime of the process."""
    setup_logging(settings)
    engine = create_engine(settings)
    await init_models(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    logger.info(
        "app_starting",
        environment=settings.app_env,
        database=settings.database_url.split("://", 1)[0],
    )

    yield

    await engine.dispose()
    logger.info("app_shutting_down")


app = FastAPI(
    title="Trendpress",
    description="Trending-topic to blog-draft pipeline: review and approval API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
)

# ── Middleware ──────────────────────────────────────────────
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ── Errors ─────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bad ids and bodies are client errors: 400 with a single message string."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    logger.info("request_rejected", path=request.url.path, problems=problems)
    return JSONResponse(status_code=400, content={"detail": f"Invalid request: {problems}"})


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Answer 405 with every method allowed on the path, not only the first route's."""
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)

    allowed: set[str] = set()
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            allowed.update(getattr(route, "methods", None) or ())
    return JSONResponse(
        status_code=405,
        content={"detail": exc.detail},
        headers={"Allow": ", ".join(sorted(allowed))},
    )


# ── Routes ─────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(drafts.router)
app.include_router(review_pages.router)


@app.get("/")
async def root():
    return {
        "service": "Trendpress",
        "version": "0.1.0",
        "review": "/review/drafts",
        "health": "/healthz/",
    }
