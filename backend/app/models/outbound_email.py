"""
Provider-agnostic outbound email models.

These models represent a message the relay wants delivered, before any
provider-specific payload shape is applied. The dispatcher works exclusively
with these models; only the transport layer knows about SendGrid/Resend
formats.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class OutboundAttachment(BaseModel):
    """A single file attachment, still base64-encoded."""

    content: str            # base64 payload, passed through without re-encoding
    filename: str
    type: str = "application/octet-stream"
    disposition: Literal["attachment"] = "attachment"


class OutboundMessage(BaseModel):
    """
    A single email to be sent.

    The sender field is called from_email in Python because "from" is a
    keyword; model_dump(by_alias=True) produces the wire name.
    """
    model_config = ConfigDict(populate_by_name=True)

    to: str
    from_email: str = Field(alias="from")
    reply_to: Optional[str] = Field(default=None, alias="replyTo")
    subject: str
    text: str
    html: Optional[str] = None
    attachments: list[OutboundAttachment] = []


class DeliveryReceipt(BaseModel):
    """What the transport reports back after a provider accepted a message."""

    provider: str
    status_code: int
    message_id: Optional[str] = None


class ConfirmationOutcome(BaseModel):
    """
    Result of the best-effort confirmation email.

    Recorded and logged only: never raised and never returned to the client.
    """

    sent: bool = False
    skipped: bool = False
    error: Optional[str] = None
    receipt: Optional[DeliveryReceipt] = None


class DispatchResult(BaseModel):
    notification: DeliveryReceipt
    confirmation: ConfirmationOutcome
