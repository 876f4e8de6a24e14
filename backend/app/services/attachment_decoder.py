"""
Attachment decoding service.

The contact form sends attachments as data-URLs produced by FileReader
(data:<mime>;base64,<payload>); older clients sent a bare base64 payload.
Two request shapes exist:

  single  — attachment + attachmentName + attachmentType
  array   — attachments: [{filename, content, type}]

Both are decoded the same way into OutboundAttachment records. Payloads are
never base64-decoded or validated here: the mail provider receives exactly
what the client sent, and malformed entries are dropped instead of failing
the inquiry.

Public API:
  parse_data_url(value: str) -> tuple[str | None, str]
  decode_attachment(value, filename=None, content_type=None) -> OutboundAttachment | None
  decode_inquiry_attachments(inquiry: Inquiry) -> list[OutboundAttachment]
"""

import logging
from typing import Optional

from app.models.inquiry import Inquiry
from app.models.outbound_email import OutboundAttachment

logger = logging.getLogger(__name__)

BASE64_MARKER = "base64,"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_FILENAME_STEM = "attachment"
MAX_ATTACHMENTS = 5


def parse_data_url(value: str) -> tuple[Optional[str], str]:
    """
    Split a data-URL into (mime_type, payload).

    Without the "base64," marker the whole string is treated as an already
    encoded payload and the MIME type is unknown (None).

    >>> parse_data_url("data:image/jpeg;base64,AAAA")
    ('image/jpeg', 'AAAA')
    >>> parse_data_url("AAAA")
    (None, 'AAAA')
    """
    if BASE64_MARKER not in value:
        return None, value

    meta, _, payload = value.partition(BASE64_MARKER)
    # meta looks like "data:image/jpeg;"
    mime = meta.split(";", 1)[0]
    if mime.startswith("data:"):
        mime = mime[len("data:"):]
    mime = mime.strip()
    return (mime or None), payload


def _default_filename(content_type: str) -> str:
    if content_type == DEFAULT_CONTENT_TYPE or "/" not in content_type:
        ext = "bin"
    else:
        ext = content_type.split("/", 1)[1].split(";", 1)[0].strip() or "bin"
    return f"{DEFAULT_FILENAME_STEM}.{ext}"


def decode_attachment(
    value: Optional[str],
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> Optional[OutboundAttachment]:
    """
    Normalize one attachment.

    Client-supplied filename/content_type take precedence over the MIME type
    sniffed from the data-URL. Returns None when no attachment was supplied.
    Pure function: the same arguments always produce an equal record.
    """
    if not value:
        return None

    sniffed_type, payload = parse_data_url(value)
    resolved_type = (content_type or "").strip() or sniffed_type or DEFAULT_CONTENT_TYPE
    resolved_name = (filename or "").strip() or _default_filename(resolved_type)

    return OutboundAttachment(
        content=payload,
        filename=resolved_name,
        type=resolved_type,
    )


def decode_inquiry_attachments(inquiry: Inquiry) -> list[OutboundAttachment]:
    """
    Decode every attachment carried by an inquiry.

    The single-attachment field comes first, then the array items in order.
    Array items without content are skipped. At most MAX_ATTACHMENTS records
    are returned; the rest are dropped with a warning.
    """
    decoded: list[OutboundAttachment] = []

    single = decode_attachment(
        inquiry.attachment,
        filename=inquiry.attachment_name,
        content_type=inquiry.attachment_type,
    )
    if single is not None:
        decoded.append(single)

    skipped = 0
    for item in inquiry.attachments:
        attachment = decode_attachment(item.content, item.filename, item.type)
        if attachment is None:
            skipped += 1
            continue
        decoded.append(attachment)

    if skipped:
        logger.warning(f"Skipped {skipped} attachment(s) without content")

    if len(decoded) > MAX_ATTACHMENTS:
        logger.warning(
            f"Received {len(decoded)} attachments; keeping the first {MAX_ATTACHMENTS}"
        )
        decoded = decoded[:MAX_ATTACHMENTS]

    return decoded
