"""
main.py — LeaseWise FastAPI application entry point.

Start with: uvicorn leasewise.main:app --reload --port 8000
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from leasewise.config import settings
from leasewise.inputs.errors import VALIDATION_ERROR, error_response, validation_error_response

# ---------------------------------------------------------------------------
# Logging — configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan — startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Initialize Redis projection cache (only when settings.cache_enabled)
    Shutdown:
      1. Close Redis pool
    """
    app.state.redis = None
    if settings.cache_enabled:
        from leasewise.cache import create_redis_pool
        app.state.redis = await create_redis_pool()
    else:
        logger.info("Projection cache disabled — every request computed fresh")

    logger.info("LeaseWise v%s starting up", settings.app_version)
    yield

    # --- Shutdown ---
    if app.state.redis is not None:
        await app.state.redis.aclose()
        logger.info("Redis connection pool closed")
    logger.info("LeaseWise shutting down")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="LeaseWise API",
    version=settings.app_version,
    description=(
        "Car lease vs buy calculator for salaried employees. "
        "Projects year-by-year cost under a pre-tax car lease scheme against a loan purchase."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware — restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Exception handlers — every failure leaves in the {error: {...}} envelope
# ---------------------------------------------------------------------------
_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: VALIDATION_ERROR,
}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Schema violations from pydantic, one detail per failing location."""
    violations = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body") or None,
            "issue": error["msg"],
        }
        for error in exc.errors()
    ]
    return error_response(
        VALIDATION_ERROR, "Request validation failed", violations, status_code=422
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return error_response(code, str(exc.detail), status_code=exc.status_code)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Business-rule violations that escape a route; same 422 shape the routes return."""
    return validation_error_response(exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=True)
    details = [{"issue": f"{type(exc).__name__}: {exc}"}] if settings.debug else []
    return error_response("INTERNAL_ERROR", "Projection service error", details)


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    """Returns service health status."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from leasewise.calculator.routes import router as calculator_router  # noqa: E402

app.include_router(calculator_router)
