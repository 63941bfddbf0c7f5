"""
Unit tests for the SMTP mail transport.

aiosmtplib.send is patched in every test, so no SMTP server is contacted.
"""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from app.config import Settings
from app.models.contact import ContactAttachment
from app.services.mailer import (
    MailMessage,
    MailTransportError,
    SmtpMailTransport,
    build_mime,
    get_mail_transport,
    header_safe,
)


def _message(**overrides) -> MailMessage:
    values = dict(
        sender="site@example.com",
        to=["staff@example.com"],
        subject="New inquiry",
        html="<p>Hello</p>",
        text="Hello",
    )
    values.update(overrides)
    return MailMessage(**values)


def _settings(**overrides) -> Settings:
    values = dict(
        mail_host="smtp.example.com",
        mail_port=465,
        mail_secure=True,
        mail_user="user",
        mail_pass="secret",
        mail_timeout_seconds=15.0,
    )
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# MIME building
# ---------------------------------------------------------------------------

class TestBuildMime:
    """Test build_mime()."""

    def test_headers(self):
        mime = build_mime(_message(to=["a@x.com", "b@x.com"], reply_to="jane@x.com"))

        assert mime["Subject"] == "New inquiry"
        assert mime["From"] == "site@example.com"
        assert mime["To"] == "a@x.com, b@x.com"
        assert mime["Reply-To"] == "jane@x.com"
        assert mime["Message-ID"].endswith("@example.com>")

    def test_no_reply_to_header_when_unset(self):
        mime = build_mime(_message())
        assert mime["Reply-To"] is None

    def test_text_and_html_alternatives(self):
        mime = build_mime(_message())

        text_part = mime.get_body(preferencelist=("plain",))
        html_part = mime.get_body(preferencelist=("html",))

        assert text_part.get_content().strip() == "Hello"
        assert html_part.get_content().strip() == "<p>Hello</p>"

    def test_attachments_in_order(self):
        attachments = [
            ContactAttachment(filename="a.pdf", content=b"%PDF", content_type="application/pdf"),
            ContactAttachment(filename="b.png", content=b"\x89PNG", content_type="image/png"),
        ]

        mime = build_mime(_message(attachments=attachments))

        parts = list(mime.iter_attachments())
        assert [p.get_filename() for p in parts] == ["a.pdf", "b.png"]
        assert [p.get_content_type() for p in parts] == ["application/pdf", "image/png"]
        assert parts[0].get_content() == b"%PDF"

    def test_malformed_content_type_becomes_octet_stream(self):
        attachments = [ContactAttachment(filename="x", content=b"1", content_type="weird")]

        mime = build_mime(_message(attachments=attachments))

        [part] = list(mime.iter_attachments())
        assert part.get_content_type() == "application/octet-stream"

    def test_unicode_subject_survives(self):
        mime = build_mime(_message(subject="お問い合わせ受付のお知らせ"))
        assert mime["Subject"] == "お問い合わせ受付のお知らせ"


class TestHeaderSafety:
    """Visitor text with line breaks must not break or inject headers."""

    @pytest.mark.parametrize(
        "subject,expected",
        [
            ("[Web] Hello\nWorld", "[Web] Hello World"),
            ("Line1\r\nLine2", "Line1 Line2"),
            ("Tab\there\x00and\x7fthere", "Tab here and there"),
            ("Trailing newline\n", "Trailing newline"),
        ],
    )
    def test_subject_line_breaks_collapse_to_space(self, subject, expected):
        mime = build_mime(_message(subject=subject))
        assert mime["Subject"] == expected

    def test_subject_cannot_inject_headers(self):
        mime = build_mime(_message(subject="Hi\r\nBcc: victim@example.org"))

        assert mime["Bcc"] is None
        assert "\n" not in mime["Subject"]

    def test_reply_to_and_recipients_are_single_line(self):
        mime = build_mime(_message(to=["staff@example.com\r\n"], reply_to="\njane@x.com\r\n"))

        assert mime["To"] == "staff@example.com"
        assert mime["Reply-To"] == "jane@x.com"

    def test_reply_to_cannot_inject_headers(self):
        mime = build_mime(_message(reply_to="jane@x.com\r\nBcc: victim@example.org"))

        assert mime["Bcc"] is None
        assert "\n" not in str(mime["Reply-To"])

    def test_attachment_filename_line_breaks_collapse(self):
        attachments = [
            ContactAttachment(filename="report\r\nQ1.pdf", content=b"%PDF", content_type="application/pdf"),
        ]

        mime = build_mime(_message(attachments=attachments))

        [part] = list(mime.iter_attachments())
        assert part.get_filename() == "report Q1.pdf"

    def test_filename_of_only_control_chars_gets_placeholder(self):
        attachments = [ContactAttachment(filename="\r\n", content=b"x", content_type="text/plain")]

        mime = build_mime(_message(attachments=attachments))

        [part] = list(mime.iter_attachments())
        assert part.get_filename() == "attachment"

    def test_message_serializes(self):
        message = _message(
            subject="Line1\nLine2",
            reply_to="jane@x.com\n",
            attachments=[ContactAttachment(filename="a\nb.txt", content=b"x", content_type="text/plain")],
        )

        raw = build_mime(message).as_bytes()

        assert b"Subject: Line1 Line2" in raw
        assert b"Bcc" not in raw


# ---------------------------------------------------------------------------
# SMTP transport
# ---------------------------------------------------------------------------

class TestSmtpMailTransport:
    """Test SmtpMailTransport.send()."""

    @pytest.mark.asyncio
    async def test_sends_with_configured_connection(self):
        transport = SmtpMailTransport(_settings())

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await transport.send(_message())

        mock_send.assert_awaited_once()
        kwargs = mock_send.call_args.kwargs
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 465
        assert kwargs["username"] == "user"
        assert kwargs["password"] == "secret"
        assert kwargs["use_tls"] is True
        assert kwargs["timeout"] == 15.0
        assert mock_send.call_args.args[0]["Subject"] == "New inquiry"

    @pytest.mark.asyncio
    async def test_empty_credentials_are_not_sent(self):
        transport = SmtpMailTransport(_settings(mail_user="", mail_pass="", mail_secure=False))

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await transport.send(_message())

        kwargs = mock_send.call_args.kwargs
        assert kwargs["username"] is None
        assert kwargs["password"] is None
        assert kwargs["use_tls"] is False

    @pytest.mark.asyncio
    async def test_no_recipients_raises_without_connecting(self):
        transport = SmtpMailTransport(_settings())

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            with pytest.raises(MailTransportError, match="no recipients"):
                await transport.send(_message(to=[]))

        mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_error_is_wrapped(self):
        transport = SmtpMailTransport(_settings())
        error = aiosmtplib.SMTPException("mailbox unavailable")

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock, side_effect=error):
            with pytest.raises(MailTransportError, match="SMTP error") as exc_info:
                await transport.send(_message())

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self):
        transport = SmtpMailTransport(_settings())

        with patch(
            "app.services.mailer.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=ConnectionRefusedError("refused"),
        ):
            with pytest.raises(MailTransportError, match="Connection failed"):
                await transport.send(_message())

    @pytest.mark.asyncio
    async def test_one_attempt_only(self):
        transport = SmtpMailTransport(_settings())

        with patch(
            "app.services.mailer.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=TimeoutError("timed out"),
        ) as mock_send:
            with pytest.raises(MailTransportError):
                await transport.send(_message())

        assert mock_send.await_count == 1


class TestHeaderSafe:

    def test_runs_of_control_chars_become_one_space(self):
        assert header_safe("a\r\n\r\nb") == "a b"

    def test_plain_text_untouched(self):
        assert header_safe("Hello, 世界") == "Hello, 世界"


def test_get_mail_transport_returns_smtp_transport():
    assert isinstance(get_mail_transport(_settings()), SmtpMailTransport)
