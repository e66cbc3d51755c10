"""
FastAPI application entry point for Feelin Pay.

Receives payment notifications from owners' phones, records them in the
owner's Google Sheets ledger and alerts on-duty workers via push.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from feelin_pay.api.routes import health
from feelin_pay.api.routes import memberships
from feelin_pay.api.routes import owners
from feelin_pay.api.routes import payments
from feelin_pay.config.settings import get_settings
from feelin_pay.integrations.fcm.client import FCMClient
from feelin_pay.integrations.google.auth import ServiceAccountTokenProvider
from feelin_pay.integrations.google.client import GoogleWorkspaceClient
from feelin_pay.platform.secrets import SecretRedactingFilter, validate_encryption_configured
from feelin_pay.services.errors import InternalError, PipelineError

# Configure structured logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(SecretRedactingFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Feelin Pay API")
    settings = get_settings()
    app.state.settings = settings

    app.state.google_service_account = ServiceAccountTokenProvider(
        settings.google_service_account_file,
        settings.google_scopes,
        timeout=settings.external_timeout_seconds,
    )
    app.state.google_client = GoogleWorkspaceClient(
        drive_base_url=settings.drive_base_url,
        sheets_base_url=settings.sheets_base_url,
        timeout=settings.external_timeout_seconds,
    )
    app.state.fcm_client = FCMClient(
        project_id=settings.firebase_project_id,
        token_provider=ServiceAccountTokenProvider(
            settings.google_service_account_file,
            settings.fcm_scopes,
            timeout=settings.external_timeout_seconds,
        ),
        base_url=settings.fcm_base_url,
        timeout=settings.external_timeout_seconds,
    )

    if not os.getenv("DATABASE_URL"):
        logger.error("DATABASE_URL is not set. Database-backed endpoints will return 503.")
    if not validate_encryption_configured():
        logger.warning("ENCRYPTION_KEY is not set. Stored delegated Google tokens cannot be used.")
    if not settings.firebase_project_id:
        logger.warning("FIREBASE_PROJECT_ID is not set. Push notifications will fail.")

    logger.info(
        "Feelin Pay API ready",
        extra={
            "token_refresh_margin_minutes": settings.token_refresh_margin_minutes,
            "external_timeout_seconds": settings.external_timeout_seconds,
        },
    )

    yield

    # Shutdown
    await app.state.google_client.close()
    await app.state.fcm_client.close()
    logger.info("Shutting down Feelin Pay API")


# Create FastAPI app
app = FastAPI(
    title="Feelin Pay API",
    description="Payment notification pipeline for Yape/Plin merchants",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(health.router)
app.include_router(payments.router)
app.include_router(memberships.router)
app.include_router(owners.router)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Map domain errors to their status code and error body."""
    logger.info(
        "Request rejected",
        extra={"code": exc.code, "status_code": exc.http_status, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are reported as 400 VALIDATION_ERROR."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "code": "VALIDATION_ERROR", "message": message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions with proper logging. No internal detail is returned."""
    logger.error(
        "Unhandled exception",
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_dict(),
    )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "development"
    )
