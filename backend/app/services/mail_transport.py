"""
Outbound mail transport.

Converts a provider-agnostic OutboundMessage into a provider-specific HTTP
request and sends it.

Supported providers:
  - sendgrid  (default; POST https://api.sendgrid.com/v3/mail/send)
  - resend    (POST https://api.resend.com/emails)

Adding a new provider:
  1. Write a to_<provider>_payload(message: OutboundMessage) -> dict function.
  2. Register a MailProvider for it in _PROVIDERS.
  3. Set MAIL_PROVIDER=<provider> in the environment.

Retries, rate limiting and delivery guarantees belong to the provider. This
module performs exactly one HTTP request per send() call.

SendGrid v3 payload
-------------------
  personalizations  list  — [{"to": [{"email": ...}]}]
  from              obj   — {"email": ...}
  reply_to          obj   — {"email": ...}
  subject           str
  content           list  — [{"type": "text/plain", "value": ...}, {"type": "text/html", ...}]
  attachments       list  — {content, filename, type, disposition}

A 202 response means accepted; the message id is in the X-Message-Id header.

Resend payload
--------------
  from, to (list), subject, text, html, reply_to,
  attachments — {filename, content, content_type}

A 200 response carries {"id": ...}.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from app.config import ConfigurationError, MailSettings
from app.models.outbound_email import DeliveryReceipt, OutboundMessage

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """
    The provider did not accept a message.

    status_code is the provider's HTTP status (None for network errors);
    details is the provider's response body when one was returned.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def to_sendgrid_payload(message: OutboundMessage) -> dict:
    """Build a SendGrid v3 /mail/send body."""
    content = [{"type": "text/plain", "value": message.text}]
    if message.html:
        content.append({"type": "text/html", "value": message.html})

    payload: dict = {
        "personalizations": [{"to": [{"email": message.to}]}],
        "from": {"email": message.from_email},
        "subject": message.subject,
        "content": content,
    }
    if message.reply_to:
        payload["reply_to"] = {"email": message.reply_to}
    if message.attachments:
        payload["attachments"] = [a.model_dump() for a in message.attachments]
    return payload


def to_resend_payload(message: OutboundMessage) -> dict:
    """Build a Resend /emails body."""
    payload: dict = {
        "from": message.from_email,
        "to": [message.to],
        "subject": message.subject,
        "text": message.text,
    }
    if message.html:
        payload["html"] = message.html
    if message.reply_to:
        payload["reply_to"] = message.reply_to
    if message.attachments:
        payload["attachments"] = [
            {
                "filename": a.filename,
                "content": a.content,
                "content_type": a.type,
            }
            for a in message.attachments
        ]
    return payload


def _sendgrid_message_id(response: httpx.Response) -> Optional[str]:
    return response.headers.get("x-message-id")


def _resend_message_id(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data.get("id") if isinstance(data, dict) else None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MailProvider:
    name: str
    url: str
    build_payload: Callable[[OutboundMessage], dict]
    message_id: Callable[[httpx.Response], Optional[str]]


_PROVIDERS: dict[str, MailProvider] = {
    "sendgrid": MailProvider(
        name="sendgrid",
        url="https://api.sendgrid.com/v3/mail/send",
        build_payload=to_sendgrid_payload,
        message_id=_sendgrid_message_id,
    ),
    "resend": MailProvider(
        name="resend",
        url="https://api.resend.com/emails",
        build_payload=to_resend_payload,
        message_id=_resend_message_id,
    ),
}


def get_provider(name: str) -> MailProvider:
    """
    Look up a provider by name (case-insensitive).

    Raises ConfigurationError for unknown provider names.
    """
    resolved = (name or "").lower().strip()
    provider = _PROVIDERS.get(resolved)
    if provider is None:
        raise ConfigurationError(
            f"Unknown mail provider {resolved!r}. "
            f"Supported providers: {sorted(_PROVIDERS)}"
        )
    return provider


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------

class MailTransport:
    """Anything that can deliver an OutboundMessage."""

    async def send(self, message: OutboundMessage) -> DeliveryReceipt:
        raise NotImplementedError


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class HttpMailTransport(MailTransport):
    """
    Sends messages through a provider's HTTP API.

    A fresh httpx.AsyncClient is opened per send unless one is injected
    (tests inject a client backed by httpx.MockTransport).
    """

    def __init__(
        self,
        provider: MailProvider,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.provider = provider
        self._api_key = api_key
        self._client = client
        self._timeout = timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        return await client.post(
            self.provider.url,
            json=payload,
            headers=self._headers(),
            timeout=self._timeout,
        )

    async def send(self, message: OutboundMessage) -> DeliveryReceipt:
        """
        Deliver one message.

        Raises:
            MailDeliveryError: on a network error or a non-2xx response.
        """
        payload = self.provider.build_payload(message)
        logger.debug(
            f"Sending via {self.provider.name}: to={message.to!r}, "
            f"attachments={len(message.attachments)}"
        )

        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as exc:
            raise MailDeliveryError(
                f"{self.provider.name} request failed: {exc}"
            ) from exc

        if not response.is_success:
            raise MailDeliveryError(
                f"{self.provider.name} rejected the message "
                f"(HTTP {response.status_code})",
                status_code=response.status_code,
                details=_response_details(response),
            )

        return DeliveryReceipt(
            provider=self.provider.name,
            status_code=response.status_code,
            message_id=self.provider.message_id(response),
        )


def build_transport(settings: MailSettings) -> MailTransport:
    """
    Create the transport selected by settings.provider.

    Raises ConfigurationError for unknown provider names.
    """
    provider = get_provider(settings.provider)
    return HttpMailTransport(
        provider=provider,
        api_key=settings.api_key,
        timeout=settings.timeout_seconds,
    )
