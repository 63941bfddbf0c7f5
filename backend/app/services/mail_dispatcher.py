"""
Mail dispatcher.

Sends the two emails of a submission through an injected MailTransport:
the staff notification first, then (only when the visitor gave an email
address) the auto-reply. The two sends are independent: once the
notification is out it stays out, whatever happens to the auto-reply.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from app.services.mailer import MailMessage, MailTransport

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """A send failed. ``stage`` is "notification" or "auto_reply"."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} send failed: {cause}")


@dataclass
class DispatchReport:
    notification_sent: bool = False
    auto_reply_sent: bool = False


async def dispatch(
    transport: MailTransport,
    notification: MailMessage,
    auto_reply: Optional[MailMessage],
    request_id: str = "-",
) -> DispatchReport:
    """
    Send notification, then auto-reply if there is one. One attempt each.

    Raises:
        MailDeliveryError: on the first failed send. A notification failure
            means the auto-reply is never attempted.
    """
    report = DispatchReport()

    try:
        await transport.send(notification)
    except Exception as e:
        raise MailDeliveryError("notification", e) from e
    report.notification_sent = True
    logger.info(f"[{request_id}] Notification sent")

    if auto_reply is None:
        logger.info(f"[{request_id}] No visitor email; auto-reply skipped")
        return report

    try:
        await transport.send(auto_reply)
    except Exception as e:
        raise MailDeliveryError("auto_reply", e) from e
    report.auto_reply_sent = True
    logger.info(f"[{request_id}] Auto-reply sent")

    return report
