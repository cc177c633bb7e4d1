"""ZeroBuild - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from zerobuild import __version__
from zerobuild.api import api_router
from zerobuild.api.limiter import limiter
from zerobuild.api.models import HealthResponse
from zerobuild.config import get_config_dict, settings
from zerobuild.errors import ErrorKind, ZeroBuildError
from zerobuild.logging_config import setup_logging

# Configure logging early
setup_logging(debug=settings.debug, json_logs=not settings.debug)

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NO_CREDENTIALS: 400,
    ErrorKind.AUTH_INVALID: 401,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.TRANSIENT_RATE_LIMIT: 429,
    ErrorKind.REPOSITORY_NOT_READY: 503,
}


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND.get(kind, 502)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    config = get_config_dict()
    logger.info(
        f"{settings.app_name} starting up (backends with keys: "
        f"{', '.join(config['backends']) or 'none'}, github: {config['github_configured']})"
    )
    yield
    logger.info(f"{settings.app_name} shutdown complete")


# OpenAPI documentation tags
tags_metadata = [
    {
        "name": "generation",
        "description": "Generate, refine and check React Native app code",
    },
    {
        "name": "publish",
        "description": "Publish generated apps to GitHub as Expo projects",
    },
]

app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="ZeroBuild - turn an app idea into React Native code and "
    "publish it to GitHub with a ready-to-run build workflow.",
    lifespan=lifespan,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ZeroBuildError)
async def zerobuild_error_handler(request: Request, exc: ZeroBuildError) -> JSONResponse:
    """Render pipeline failures as {detail, kind, hint}."""
    status_code = status_for(exc.kind)
    logger.warning(
        f"Request failed ({exc.kind.value}): {exc.message}",
        extra={"path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# CORS for the mobile/web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing information."""
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    # Skip health checks to reduce noise
    path = request.url.path
    if path not in ("/health", "/api/health"):
        logger.info(
            "http_request",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

    return response


# API routes
app.include_router(api_router)


def _get_health_response() -> HealthResponse:
    config = get_config_dict()
    return HealthResponse(
        status="ok",
        version=__version__,
        backends=config["backends"],
        github_configured=config["github_configured"],
    )


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health() -> HealthResponse:
    """Health check endpoint.

    Reports which generation backends have a server-side key and whether
    publishing is configured.
    """
    return _get_health_response()


@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def api_health() -> HealthResponse:
    """Health check endpoint (API prefix alias)."""
    return _get_health_response()


def main():
    """Run the application."""
    import uvicorn

    uvicorn.run(
        "zerobuild.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
