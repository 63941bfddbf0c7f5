"""
Mail transport.

This is the only module that knows about SMTP. The pipeline talks to a
MailTransport and hands it MailMessage envelopes; tests substitute any
object with an async send().

Configuration (see app.config):
  MAIL_HOST, MAIL_PORT      SMTP server (default port 465)
  MAIL_SECURE               implicit TLS, "true" for 465 (default true)
  MAIL_USER, MAIL_PASS      SMTP credentials (optional)
  MAIL_TIMEOUT_SECONDS      per-connection timeout (optional)

Each send opens its own SMTP connection, so one SmtpMailTransport can be
shared by concurrent requests. One attempt per message; no retry.
"""

import logging
import re
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional, Protocol

import aiosmtplib
from fastapi import Depends
from pydantic import BaseModel

from app.config import Settings, get_settings
from app.models.contact import ContactAttachment

logger = logging.getLogger(__name__)

# CR, LF and other C0/DEL control characters; EmailMessage rejects CR/LF in
# header values and the rest have no business in a header either.
_HEADER_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]+")


class MailMessage(BaseModel):
    """Transport-agnostic email envelope."""

    sender: str
    to: list[str]
    subject: str
    html: str
    text: Optional[str] = None
    reply_to: Optional[str] = None
    attachments: list[ContactAttachment] = []


class MailTransportError(Exception):
    """Raised when the transport rejects or cannot deliver a message."""


class MailTransport(Protocol):
    async def send(self, message: MailMessage) -> None:
        ...


def header_safe(value: str) -> str:
    """Collapse runs of control characters (CR/LF included) to one space."""
    return _HEADER_CONTROL_CHARS.sub(" ", value).strip()


def build_mime(message: MailMessage) -> EmailMessage:
    """
    Build a MIME message: text part, HTML alternative, then attachments.

    Subject, addresses and attachment filenames can carry visitor input, so
    every header value passes through header_safe() first. A multi-line
    subject is sent on one line instead of failing the send.
    """
    mime = EmailMessage()
    sender = header_safe(message.sender)
    mime["Subject"] = header_safe(message.subject)
    mime["From"] = sender
    mime["To"] = ", ".join(header_safe(addr) for addr in message.to)
    if message.reply_to:
        mime["Reply-To"] = header_safe(message.reply_to)
    domain = sender.rsplit("@", 1)[-1].strip(">") if "@" in sender else None
    mime["Message-ID"] = make_msgid(domain=domain)

    mime.set_content(message.text or "")
    mime.add_alternative(message.html, subtype="html")

    for att in message.attachments:
        maintype, _, subtype = att.content_type.partition("/")
        if not subtype:
            maintype, subtype = "application", "octet-stream"
        mime.add_attachment(
            att.content,
            maintype=maintype,
            subtype=subtype,
            filename=header_safe(att.filename) or "attachment",
        )

    return mime


class SmtpMailTransport:
    def __init__(self, settings: Settings):
        self._settings = settings

    async def send(self, message: MailMessage) -> None:
        """
        Deliver one message over SMTP.

        Raises:
            MailTransportError: on SMTP errors or connection failures
        """
        if not message.to:
            raise MailTransportError("Message has no recipients")

        s = self._settings
        mime = build_mime(message)

        try:
            await aiosmtplib.send(
                mime,
                hostname=s.mail_host,
                port=s.mail_port,
                username=s.mail_user or None,
                password=s.mail_pass or None,
                use_tls=s.mail_secure,
                timeout=s.mail_timeout_seconds,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP error sending '{message.subject}': {e}")
            raise MailTransportError(f"SMTP error: {e}") from e
        except OSError as e:
            logger.error(f"Connection failed to {s.mail_host}:{s.mail_port}: {e}")
            raise MailTransportError(f"Connection failed: {e}") from e

        logger.info(
            f"Delivered: to={len(message.to)} recipient(s) subject='{message.subject}' "
            f"attachments={len(message.attachments)}"
        )


def get_mail_transport(settings: Settings = Depends(get_settings)) -> MailTransport:
    """FastAPI dependency; tests override it with a fake transport."""
    return SmtpMailTransport(settings)
