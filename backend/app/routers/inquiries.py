"""
Inquiry router.

Receives contact-form submissions from the marketing site and relays them by
email.

Environment variables
---------------------
MAIL_API_KEY               Mail provider API key (required).
SENDGRID_API_KEY           Legacy alias — checked when MAIL_API_KEY is not set.
MAIL_PROVIDER              "sendgrid" (default) or "resend".
INQUIRY_REQUIRE_MESSAGE    Reject submissions with an empty message.

Endpoints:
  POST    /api/inquiries   — submit an inquiry (no auth; called cross-origin)
  OPTIONS /api/inquiries   — CORS preflight
  other methods            — 405
"""

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from app.config import ConfigurationError, load_mail_settings, require_message_enabled
from app.models.inquiry import (
    ErrorResponse,
    InquiryCreated,
    ValidationErrorResponse,
)
from app.services.attachment_decoder import decode_inquiry_attachments
from app.services.inquiry_dispatcher import InquiryDispatcher
from app.services.inquiry_validator import InquiryValidationError, validate_inquiry
from app.services.mail_transport import MailDeliveryError, build_transport

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_METHODS = "POST, OPTIONS"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ALLOWED_METHODS,
    "Access-Control-Allow-Headers": "Content-Type",
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _json(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=CORS_HEADERS)


async def _read_body(request: Request):
    """
    Decode the JSON body.

    An empty body decodes to {} so the validator reports the missing email;
    invalid JSON is a validation error.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        raise InquiryValidationError("Request body must be valid JSON")


def get_dispatcher() -> InquiryDispatcher:
    """
    Build a dispatcher from the current environment.

    Raises ConfigurationError when the API key is missing or the provider is
    unknown.
    """
    settings = load_mail_settings()
    return InquiryDispatcher(build_transport(settings), settings)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    status_code=201,
    response_model=InquiryCreated,
    responses={
        400: {"model": ValidationErrorResponse, "description": "Invalid submission"},
        500: {"model": ErrorResponse, "description": "Configuration or delivery failure"},
    },
)
async def create_inquiry(request: Request):
    """
    Validate a submission and email it to the business inbox.

    Order matters: validation and configuration faults are reported before
    any network call. A failed notification is a 500; a failed confirmation
    is logged and does not change the 201.
    """
    # 1. Validate input
    try:
        body = await _read_body(request)
        inquiry = validate_inquiry(body, require_message=require_message_enabled())
    except InquiryValidationError as exc:
        logger.info(f"Rejected inquiry: {exc.message} (field={exc.field})")
        return _json(400, exc.to_dict())

    # 2. Mail configuration
    try:
        dispatcher = get_dispatcher()
    except ConfigurationError as exc:
        logger.error(f"Mail transport not configured: {exc}")
        return _json(500, {"message": str(exc)})

    # 3. Attachments (never fails)
    attachments = decode_inquiry_attachments(inquiry)

    # 4. Send notification + best-effort confirmation
    try:
        await dispatcher.dispatch(inquiry, attachments)
    except MailDeliveryError as exc:
        details = exc.details if exc.details is not None else exc.message
        return _json(500, {"message": "Failed to send the inquiry email", "details": details})
    except Exception:
        logger.exception("Unexpected error while dispatching inquiry")
        return _json(500, {"message": "Internal server error"})

    return _json(201, InquiryCreated().model_dump())


@router.options("")
async def inquiry_preflight() -> Response:
    """CORS preflight. Always 200, even without Origin headers."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route("", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def inquiry_method_not_allowed() -> JSONResponse:
    response = _json(405, {"message": "Method not allowed"})
    response.headers["Allow"] = ALLOWED_METHODS
    return response
