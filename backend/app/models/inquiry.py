"""
Pydantic models for contact-form inquiries.

Models:
  RawAttachment     — one item of the array-style "attachments" field, undecoded
  Inquiry           — canonical, request-scoped submission produced by the validator
  InquiryCreated    — 201 response body
  ValidationErrorResponse / ErrorResponse — error response bodies
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawAttachment(BaseModel):
    """
    A client-supplied attachment before decoding.

    content is either a data-URL (data:<mime>;base64,<payload>) or a bare
    base64 payload. Items without content are dropped by the decoder, not
    rejected here.
    """
    model_config = ConfigDict(extra="ignore")

    filename: Optional[str] = None
    content: Optional[str] = None
    type: Optional[str] = None

    @field_validator("filename", "content", "type", mode="before")
    @classmethod
    def drop_non_strings(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None


class Inquiry(BaseModel):
    """
    Canonical inquiry after synonym resolution.

    Only email is a hard requirement. Field names on the wire are camelCase
    for the attachment metadata (attachmentName / attachmentType); both the
    alias and the Python name are accepted.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    email: str
    phone: str = ""
    package: str = "Base"
    message: str = ""

    attachment: Optional[str] = None
    attachment_name: Optional[str] = Field(default=None, alias="attachmentName")
    attachment_type: Optional[str] = Field(default=None, alias="attachmentType")
    attachments: list[RawAttachment] = []

    @field_validator("email")
    @classmethod
    def email_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email is required")
        return v

    @field_validator("name", "phone", "package", "message", mode="before")
    @classmethod
    def numbers_to_text(cls, v: Any) -> Any:
        # Phone numbers in particular often arrive as JSON numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name", "phone", "package", "message")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("package")
    @classmethod
    def default_blank_package(cls, v: str) -> str:
        # An empty selection on the form means the default package
        return v or "Base"


class InquiryCreated(BaseModel):
    success: bool = True


class ValidationErrorResponse(BaseModel):
    message: str
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str
    details: Optional[Any] = None
