"""FastAPI dashboard backend main application."""

import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.infra.config import config
from app.infra.error_handler import DashboardError, ErrorCategory
from app.infra.logging import app_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    # Startup
    app_logger.info("Application starting up", extra={"env": config.APP_ENV})

    yield

    # Shutdown
    app_logger.info("Application shutting down")

    # Close database connections
    from app.infra.database import engine
    engine.dispose()


# Create app with lifespan
app = FastAPI(
    title="Estate Ledger API",
    description="""
    Estate Ledger API serves the multi-tenant real-estate bookkeeping dashboard:
    bank transactions, renters, business partners, booking categories and rent
    milestones, each scoped to the active tenant (company).

    ## Tenant selection

    The active tenant is resolved per request from the `tenantId` query
    parameter, then the `selectedTenantId` cookie, then the first tenant the
    caller is authorized for. `POST /api/tenants/switch` sets the cookie.

    ## Authentication

    Endpoints require API key authentication via:
    - Header: `X-API-Key: <your-api-key>`
    - Query parameter: `?api_key=<your-api-key>`
    """,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Tenants",
            "description": "List authorized tenants, inspect and switch the active tenant",
        },
        {
            "name": "Tables",
            "description": "Tenant-scoped table rows, option lists, rendered grid pages and cell updates",
        },
        {
            "name": "Reports",
            "description": "Rent overview and monthly summary",
        },
        {
            "name": "Health",
            "description": "Health check and monitoring endpoints",
        },
    ],
)

# Setup middleware
from app.infra.middleware import RequestIDMiddleware, RequestLoggingMiddleware, setup_cors
from app.infra.timeout import TimeoutMiddleware, REQUEST_TIMEOUT

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(TimeoutMiddleware, timeout=REQUEST_TIMEOUT)
setup_cors(app)

# Import and register routers
from app.api.routers import health, reports, tables, tenants, update

# update before tables so /api/database/update is matched ahead of /api/database/{table}
app.include_router(health.router)
app.include_router(tenants.router)
app.include_router(update.router)
app.include_router(tables.router)
app.include_router(reports.router)


# Configure OpenAPI security schemes
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=app.openapi_tags,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["ApiKeyAuth"] = {
        "type": "apiKey",
        "in": "header",
        "name": "X-API-Key",
        "description": "API Key authentication. Provide your API key in the X-API-Key header or as api_key query parameter."
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

MAX_REQUEST_SIZE = 1024 * 1024  # 1MB


@app.middleware("http")
async def request_size_limit_middleware(request: Request, call_next):
    """Enforce request size limits."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(
            status_code=413,
            content={
                "detail": f"Request too large. Maximum size: {MAX_REQUEST_SIZE} bytes",
                "category": ErrorCategory.VALIDATION.value,
            },
        )
    return await call_next(request)


# Error handlers
@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError):
    """Render typed errors as {detail, category}."""
    if exc.status_code >= 500:
        app_logger.error(
            f"{type(exc).__name__}: {exc.message}",
            extra={"category": exc.category.value, "path": request.url.path},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "category": exc.category.value},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "category": ErrorCategory.VALIDATION.value},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions."""
    error_id = str(uuid.uuid4())
    app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"error_id": error_id})
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error. Error ID: {error_id}", "category": ErrorCategory.UNKNOWN.value},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
