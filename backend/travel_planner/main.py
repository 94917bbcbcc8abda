"""
AI Travel Planner API - FastAPI Application Entry Point

This module initializes the FastAPI application with all middleware,
routes, exception handlers and lifecycle event handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from travel_planner.api.routes import auth, budget, health, map, travel, voice
from travel_planner.core.config import settings
from travel_planner.core.database import close_db, init_db
from travel_planner.core.exceptions import TravelPlannerError
from travel_planner.core.logging_config import setup_logging
from travel_planner.middleware.logging import LoggingMiddleware
from travel_planner.middleware.rate_limit import RateLimitMiddleware
from travel_planner.middleware.request_id import RequestIDMiddleware
from travel_planner.middleware.security_headers import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup:
        - Set up logging
        - Initialize database (create tables when ENABLE_DB_CREATE_ALL is set)

    Shutdown:
        - Close database connections
    """
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    await init_db()
    logger.info(
        "Application started",
        extra={"environment": settings.environment, "llm_provider": settings.llm_provider},
    )

    yield

    await close_db()


app = FastAPI(
    title=settings.project_name,
    version=VERSION,
    description="Travel planning backend: accounts, AI itineraries, budgets, speech and maps",
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Middleware is executed in reverse order of registration
# (last registered = first executed)

app.add_middleware(SecurityHeadersMiddleware, csp_path_prefix=settings.api_prefix)

app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
    path_prefix=settings.api_prefix,
    enabled=not settings.disable_rate_limit,
)

# Runs after RequestID to access request_id
app.add_middleware(LoggingMiddleware)

app.add_middleware(RequestIDMiddleware)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# Outermost so that every response, including 429s, carries CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


def error_body(message: str, error: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None and settings.is_development:
        body["error"] = str(error)
    return body


def validation_message(exc: RequestValidationError) -> str:
    """Condense pydantic errors into one readable sentence."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    missing = [
        str(err["loc"][-1]) for err in errors
        if err.get("type") == "missing" and len(err.get("loc", ())) > 1
    ]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"

    first = errors[0]
    if first.get("type") == "missing":
        return "Request body is required"
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON"

    message = first.get("msg", "Invalid request")
    if first.get("type") == "value_error":
        return message.removeprefix("Value error, ")

    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {message}" if field else message


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "API endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_body(validation_message(exc)))


@app.exception_handler(TravelPlannerError)
async def travel_planner_exception_handler(request: Request, exc: TravelPlannerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            extra={
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
                "exception_type": type(exc).__name__,
            },
        )
    cause = exc.__cause__ if exc.status_code >= 500 else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, cause))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "request_id": getattr(request.state, "request_id", None),
            "exception_type": type(exc).__name__,
        },
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=error_body("Internal server error", exc))


app.include_router(health.router)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(travel.router, prefix=settings.api_prefix)
app.include_router(budget.router, prefix=settings.api_prefix)
app.include_router(voice.router, prefix=settings.api_prefix)
app.include_router(map.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns basic API information.
    """
    return {
        "message": "AI Travel Planner API",
        "version": VERSION,
        "docs": "/docs",
    }
