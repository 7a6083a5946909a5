"""
Webpage PDF Service - FastAPI application.

Renders a URL in a remote headless browser (Browserless over CDP, driven
by Playwright) and returns the page as a PDF download.
"""

import logging
from datetime import datetime
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import __version__
from .config import PDFSettings, get_settings, validate_config_on_startup
from .errors import ConfigurationError, GenerationError, InvalidRequestError, PDFServiceError
from .models import GeneratePDFRequest, HealthResponse, describe_validation_errors
from .renderer import generate_webpage_pdf

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

PDF_FILENAME = "webpage.pdf"

app = FastAPI(
    title="Webpage PDF Service",
    version=__version__,
    description="Render web pages to PDF using a remote headless browser"
)

# Configure CORS for the browser front end
if get_settings().cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ============================================================================
# Startup Event - Validate Configuration
# ============================================================================

@app.on_event("startup")
async def validate_config():
    """Log effective configuration and warn if the browser token is missing."""
    logger.info("Webpage PDF Service starting - validating configuration...")
    validate_config_on_startup()


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(PDFServiceError)
async def pdf_service_error_handler(request: Request, exc: PDFServiceError) -> JSONResponse:
    """Render service errors as ``{"message": ...}`` with their status code."""
    return JSONResponse(status_code=exc.status_code, content={"message": exc.public_message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map request body validation failures to HTTP 400."""
    error = InvalidRequestError(describe_validation_errors(exc.errors()))
    logger.info(f"Rejected request to {request.url.path}: {error.message}")
    return JSONResponse(status_code=error.status_code, content={"message": error.public_message})


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check(settings: PDFSettings = Depends(get_settings)) -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if the remote browser token is not configured, since
    every PDF request would fail.
    """
    if not settings.browserless_token:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "version": __version__,
                "environment": settings.environment,
                "browser_configured": False,
                "message": "PDF service is unhealthy - BROWSERLESS_TOKEN not configured"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        environment=settings.environment,
        browser_configured=True
    )


# ============================================================================
# PDF Generation Endpoint
# ============================================================================

@app.post("/generate-pdf")
async def generate_pdf_from_url(
    request: GeneratePDFRequest,
    settings: PDFSettings = Depends(get_settings)
):
    """
    Render a web page to PDF.

    Args:
        request: Body with the single ``url`` property

    Returns:
        Response with the PDF binary data

    Raises:
        PDFServiceError: 500 for missing configuration, connection,
            navigation, timeout and rendering failures
    """
    if not settings.browserless_token:
        logger.error("Browserless token is not configured")
        raise ConfigurationError("Browserless token is not configured")

    url = str(request.url)
    logger.info(f"Starting PDF generation for {url}")

    try:
        pdf_bytes = await generate_webpage_pdf(url, settings)
    except PDFServiceError as e:
        logger.error(f"PDF generation error for {url}: {e.message}")
        raise
    except Exception as e:
        logger.exception(f"Unexpected PDF generation error for {url}")
        raise GenerationError(str(e)) from e

    logger.info(f"PDF generation completed for {url} ({len(pdf_bytes)} bytes)")

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{PDF_FILENAME}"'
        }
    )
