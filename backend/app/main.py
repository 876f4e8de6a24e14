"""
Inquiry Relay Backend API
FastAPI application that relays contact-form inquiries by email.
"""

import logging
import os

from fastapi import FastAPI, HTTPException

from app.config import ConfigurationError, get_api_key, load_mail_settings
from app.routers import inquiries
from app.services.mail_transport import get_provider

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="Inquiry Relay API",
    description="Relays contact-form inquiries to the business inbox by email",
    version=VERSION,
)

# Include routers
app.include_router(inquiries.router, prefix="/api/inquiries", tags=["inquiries"])


@app.on_event("startup")
async def log_startup() -> None:
    """
    Log where the API listens and whether mail delivery is configured.

    The port shown is taken from the ``HOST_PORT`` environment variable so
    that Docker-mapped ports are reported correctly. Defaults to 8000.
    A missing API key is only a warning here: requests will fail with 500
    until it is set.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info("Inquiry Relay API running at http://localhost:%s", host_port)
    if not get_api_key():
        logger.warning(
            "MAIL_API_KEY is not set; POST /api/inquiries will return 500"
        )


@app.get("/")
async def root():
    return {"message": "Inquiry Relay API", "version": VERSION}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/mail")
async def health_mail():
    """
    Check that mail delivery is configured.

    Verifies that an API key is present and the provider name is known.
    Makes no network call, so it says nothing about provider reachability.
    Returns 503 on failure.
    """
    try:
        settings = load_mail_settings()
        provider = get_provider(settings.provider)
    except ConfigurationError as exc:
        logger.error(f"Mail health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Mail transport unavailable: {str(exc)}",
        )

    return {"status": "ok", "mail": "configured", "provider": provider.name}
