"""
Inquiry validation service.

Turns an untyped request body into a canonical Inquiry. The contact form has
been through several schema versions (English and Italian field names, a
single-attachment and an array-of-attachments shape), so every accepted
synonym is resolved here, once, before the pydantic model sees the data.
Nothing downstream of validate_inquiry handles raw request bodies.

Public API:
  resolve_field_synonyms(body: dict) -> dict
  validate_inquiry(body: Any, require_message: bool = False) -> Inquiry
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from app.models.inquiry import Inquiry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Synonyms
# ---------------------------------------------------------------------------

# Ordered candidate keys per canonical field. The canonical key is listed
# first so it wins when a client sends both.
FIELD_SYNONYMS: dict[str, list[str]] = {
    "name": ["name", "fullName", "nome"],
    "email": ["email", "mail", "from"],
    "phone": ["phone", "telefono", "tel"],
    "package": ["package", "service", "tipo", "category"],
    "message": ["message", "messaggio", "notes"],
    "attachments": ["attachments", "files"],
}

# Single-attachment fields are passed through under their wire names.
_SINGLE_ATTACHMENT_FIELDS = ("attachment", "attachmentName", "attachmentType")


class InquiryValidationError(Exception):
    """
    A submission failed validation.

    field is the dotted path of the first failing rule, or None when the body
    as a whole is unusable (e.g. not a JSON object).
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body: dict = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


def _first_present(body: dict, candidates: list[str]) -> Any:
    for key in candidates:
        value = body.get(key)
        if value is not None:
            return value
    return None


def _coerce_attachment_list(value: Any) -> list:
    """Keep only dict items; anything else is dropped rather than rejected."""
    if not isinstance(value, list):
        logger.warning(
            f"Ignoring attachments field of type {type(value).__name__}; expected a list"
        )
        return []
    items = [item for item in value if isinstance(item, dict)]
    if len(items) != len(value):
        logger.warning(f"Dropped {len(value) - len(items)} malformed attachment item(s)")
    return items


def resolve_field_synonyms(body: dict) -> dict:
    """
    Map a raw request body onto canonical Inquiry field names.

    For each canonical field the first candidate key holding a non-null value
    wins. Unknown keys are discarded. Attachment data is coerced leniently
    because a bad attachment must never block the inquiry itself.
    """
    resolved: dict = {}

    for field_name, candidates in FIELD_SYNONYMS.items():
        value = _first_present(body, candidates)
        if value is None:
            continue
        if field_name == "attachments":
            resolved[field_name] = _coerce_attachment_list(value)
        else:
            resolved[field_name] = value

    for key in _SINGLE_ATTACHMENT_FIELDS:
        value = body.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            logger.warning(f"Ignoring non-string {key} field")
            continue
        resolved[key] = value

    return resolved


def _format_location(loc: tuple) -> Optional[str]:
    parts = [str(p) for p in loc if p != "__root__"]
    return ".".join(parts) or None


def _format_message(error: dict) -> str:
    """Turn a pydantic error into a short human-readable message."""
    if error.get("type") == "missing":
        field = _format_location(error.get("loc", ())) or "Field"
        return f"{field.capitalize()} is required"
    msg = error.get("msg", "Invalid input")
    # field_validator ValueErrors are prefixed by pydantic
    return msg.removeprefix("Value error, ")


def validate_inquiry(body: Any, require_message: bool = False) -> Inquiry:
    """
    Validate and normalize a contact-form submission.

    Args:
        body: Decoded JSON request body (untrusted).
        require_message: When True an empty message is rejected. The schema
            itself treats message as optional; this is a product switch.

    Returns:
        Inquiry with defaults applied.

    Raises:
        InquiryValidationError: on the first failing rule.
    """
    if not isinstance(body, dict):
        raise InquiryValidationError("Request body must be a JSON object")

    data = resolve_field_synonyms(body)

    try:
        inquiry = Inquiry.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise InquiryValidationError(
            _format_message(first),
            field=_format_location(first.get("loc", ())),
        )

    if require_message and not inquiry.message:
        raise InquiryValidationError("Message is required", field="message")

    return inquiry
