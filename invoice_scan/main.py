"""
FastAPI application for the invoice scan service.

Provides endpoints for:
- Uploading invoice PDFs
- AI extraction of vendor, invoice and line item data
- Saving, editing, searching and deleting invoice records
- Retrieving uploaded PDFs for preview

Every /api response uses the envelope {success, data} or
{success: false, error: {message, code?}}.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .exceptions import InvoiceScanError
from .models import ErrorDetail, ErrorResponse, HealthResponse
from .routers import extract, files, invoices, upload
from .routers.dependencies import create_file_cache
from .services.extraction import get_extraction_service
from .services.invoice_store import get_invoice_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Invoice Scan Service...")
    app.state.file_cache = create_file_cache()

    if not get_extraction_service().is_configured:
        logger.error(
            "OPENAI_API_KEY environment variable is not set; extraction is unavailable"
        )
    # The database connects on first use
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Invoice Scan Service...")
    get_invoice_store().dispose()


# Create FastAPI application
app = FastAPI(
    title="Invoice Scan API",
    description="PDF invoice upload, AI extraction and record management",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(status="healthy", message="Invoice Scan API is running", version=__version__)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(upload.router)
app.include_router(extract.router)
app.include_router(invoices.router)
app.include_router(files.router)


# =============================================================================
# Exception Handlers
# =============================================================================


def error_response(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    """Build the error envelope."""
    body = ErrorResponse(error=ErrorDetail(message=message, code=code))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(InvoiceScanError)
async def invoice_scan_error_handler(request: Request, exc: InvoiceScanError):
    """Handle domain errors raised by routers and services."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies, queries and paths."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"] if part != "body")
        problems.append(f"{location}: {err['msg']}" if location else err["msg"])
    return error_response(400, "; ".join(problems) or "Invalid request", "VALIDATION_ERROR")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap framework HTTP errors (unknown routes, bad methods) in the envelope."""
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Handle anything that escaped the routers."""
    logger.exception("Unexpected error handling %s %s", request.method, request.url.path)
    return error_response(500, f"Internal error: {exc}", "INTERNAL_ERROR")
