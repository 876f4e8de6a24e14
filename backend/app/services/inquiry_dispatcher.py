"""
Inquiry dispatch service.

Turns a validated Inquiry into outbound email and hands it to the mail
transport:

  1. Notification to the business inbox (reply-to = submitter). Fatal on
     failure: MailDeliveryError propagates to the caller.
  2. Confirmation to the submitter. Best-effort: only attempted after (1)
     succeeded. Any failure is logged and recorded in a ConfirmationOutcome.

No retries. Each call sends one or two messages.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.config import MailSettings
from app.models.inquiry import Inquiry
from app.models.outbound_email import (
    ConfirmationOutcome,
    DispatchResult,
    OutboundAttachment,
    OutboundMessage,
)
from app.services import email_templates
from app.services.mail_transport import MailDeliveryError, MailTransport

logger = logging.getLogger(__name__)


class InquiryDispatcher:
    """Builds and sends the emails for one inquiry at a time."""

    def __init__(self, transport: MailTransport, settings: MailSettings):
        self.transport = transport
        self.settings = settings

    # ------------------------------------------------------------------
    # Message builders
    # ------------------------------------------------------------------

    def build_notification(
        self,
        inquiry: Inquiry,
        attachments: list[OutboundAttachment],
        now: Optional[datetime] = None,
    ) -> OutboundMessage:
        moment = now or datetime.now(timezone.utc)
        names = [a.filename for a in attachments]
        return OutboundMessage(
            to=self.settings.business_email,
            from_email=self.settings.sender_email,
            reply_to=inquiry.email,
            subject=email_templates.notification_subject(inquiry, moment),
            text=email_templates.notification_text(inquiry, names),
            html=email_templates.notification_html(inquiry, names),
            attachments=list(attachments),
        )

    def build_confirmation(self, inquiry: Inquiry) -> OutboundMessage:
        business_name = self.settings.business_name
        return OutboundMessage(
            to=inquiry.email,
            from_email=self.settings.sender_email,
            reply_to=self.settings.business_email,
            subject=email_templates.confirmation_subject(business_name),
            text=email_templates.confirmation_text(inquiry, business_name),
            html=email_templates.confirmation_html(inquiry, business_name),
        )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def _send_confirmation_best_effort(self, inquiry: Inquiry) -> ConfirmationOutcome:
        """Log-and-continue: never raises."""
        if not self.settings.send_confirmation:
            return ConfirmationOutcome(skipped=True)

        try:
            receipt = await self.transport.send(self.build_confirmation(inquiry))
        except MailDeliveryError as exc:
            logger.warning(
                f"Confirmation email not sent: {exc.message} "
                f"(status={exc.status_code})"
            )
            return ConfirmationOutcome(error=exc.message)
        except Exception as exc:
            logger.exception("Unexpected error while sending confirmation email")
            return ConfirmationOutcome(error=str(exc) or type(exc).__name__)

        logger.info(
            f"Confirmation email accepted by {receipt.provider} "
            f"(status={receipt.status_code}, message_id={receipt.message_id})"
        )
        return ConfirmationOutcome(sent=True, receipt=receipt)

    async def dispatch(
        self,
        inquiry: Inquiry,
        attachments: Optional[list[OutboundAttachment]] = None,
    ) -> DispatchResult:
        """
        Send the notification, then the confirmation.

        Raises:
            MailDeliveryError: if the notification was not accepted. The
                confirmation is not attempted in that case.
        """
        notification = self.build_notification(inquiry, attachments or [])

        try:
            receipt = await self.transport.send(notification)
        except MailDeliveryError as exc:
            logger.error(
                f"Notification email failed: {exc.message} "
                f"(status={exc.status_code}, details={exc.details!r})"
            )
            raise

        logger.info(
            f"Notification email accepted by {receipt.provider} "
            f"(status={receipt.status_code}, message_id={receipt.message_id}, "
            f"attachments={len(notification.attachments)})"
        )

        confirmation = await self._send_confirmation_best_effort(inquiry)
        return DispatchResult(notification=receipt, confirmation=confirmation)
