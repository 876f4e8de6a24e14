"""
Email body templates for inquiry notifications and confirmations.

Every user-supplied value is HTML-escaped before it is placed in an HTML
body. Plain-text bodies are left verbatim.

Public API:
  format_timestamp(moment: datetime) -> str
  notification_subject(inquiry, moment) -> str
  notification_text(inquiry, attachment_names) -> str
  notification_html(inquiry, attachment_names) -> str
  confirmation_subject(business_name) -> str
  confirmation_text(inquiry, business_name) -> str
  confirmation_html(inquiry, business_name) -> str
"""

from datetime import datetime
from html import escape

from app.models.inquiry import Inquiry

_NOT_PROVIDED = "-"

_CONFIRMATION_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, "
    "'Helvetica Neue', Arial, sans-serif; max-width: 600px; margin: 0 auto; "
    "padding: 40px 20px;"
)
_PARAGRAPH_STYLE = "color: #2d3748; font-size: 16px; line-height: 1.6;"
_SIGNATURE_STYLE = "color: #718096; font-size: 14px; margin-top: 32px;"


def _or_dash(value: str) -> str:
    return value or _NOT_PROVIDED


def format_timestamp(moment: datetime) -> str:
    """Format as DD/MM/YYYY, HH:MM:SS followed by the zone name, e.g. UTC."""
    stamp = moment.strftime("%d/%m/%Y, %H:%M:%S")
    zone = moment.tzname()
    return f"{stamp} {zone}" if zone else stamp


# ---------------------------------------------------------------------------
# Notification (to the business inbox)
# ---------------------------------------------------------------------------

def notification_subject(inquiry: Inquiry, moment: datetime) -> str:
    return f"New inquiry: {inquiry.package} - {format_timestamp(moment)} - {inquiry.email}"


def notification_text(inquiry: Inquiry, attachment_names: list[str]) -> str:
    lines = [
        f"Name: {_or_dash(inquiry.name)}",
        f"Email: {inquiry.email}",
        f"Phone: {_or_dash(inquiry.phone)}",
        f"Package: {inquiry.package}",
        "",
        "Message:",
        inquiry.message or "(no message)",
    ]
    if attachment_names:
        lines += ["", "Attachments:"]
        lines += [f"  - {name}" for name in attachment_names]
    return "\n".join(lines) + "\n"


def notification_html(inquiry: Inquiry, attachment_names: list[str]) -> str:
    rows = [
        ("Name", _or_dash(inquiry.name)),
        ("Email", inquiry.email),
        ("Phone", _or_dash(inquiry.phone)),
        ("Package", inquiry.package),
    ]
    parts = ["<h3>New contact request</h3>"]
    parts += [f"<p><strong>{label}:</strong> {escape(value)}</p>" for label, value in rows]
    parts.append("<p><strong>Message:</strong></p>")
    message = escape(inquiry.message or "(no message)").replace("\n", "<br/>")
    parts.append(f"<p>{message}</p>")
    if attachment_names:
        items = "".join(f"<li>{escape(name)}</li>" for name in attachment_names)
        parts.append(f"<p><strong>Attachments:</strong></p><ul>{items}</ul>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Confirmation (back to the submitter)
# ---------------------------------------------------------------------------

def confirmation_subject(business_name: str) -> str:
    return f"We received your request - {business_name}"


def _greeting_name(inquiry: Inquiry) -> str:
    return inquiry.name or "there"


def confirmation_text(inquiry: Inquiry, business_name: str) -> str:
    return (
        f"Hi {_greeting_name(inquiry)},\n"
        "thank you for writing to us!\n"
        "This message only confirms that we received your request.\n"
        "We will get back to you personally as soon as possible.\n"
        "\n"
        f"{business_name}\n"
    )


def confirmation_html(inquiry: Inquiry, business_name: str) -> str:
    return (
        f'<div style="{_CONFIRMATION_STYLE}">'
        f'<p style="{_PARAGRAPH_STYLE}">'
        f"Hi <strong>{escape(_greeting_name(inquiry))}</strong>,<br/>"
        "thank you for writing to us!"
        "</p>"
        f'<p style="{_PARAGRAPH_STYLE}">'
        "This message only confirms that we received your request.<br/>"
        "We will get back to you personally as soon as possible."
        "</p>"
        f'<p style="{_SIGNATURE_STYLE}"><strong>{escape(business_name)}</strong></p>'
        "</div>"
    )
