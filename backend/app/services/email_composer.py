"""
Email composer (contact form).

Builds the two emails sent for every submission:

  compose_notification()  internal notice to staff, every field in a table
  compose_auto_reply()    localized confirmation to the visitor

Every visitor-supplied value goes through _esc() before it is interpolated
into HTML. No I/O happens here; callers pass in the clock.
"""

import html
from datetime import datetime
from typing import Any

from app.config import Settings
from app.models.contact import AutoReplyContent, ContactAttachment, ContactSubmission, Lang
from app.services.mailer import MailMessage

# ---------------------------------------------------------------------------
# Localization tables
# ---------------------------------------------------------------------------

LANG_FULLNAME: dict[str, dict[str, str]] = {
    "zh": {"en": "Chinese", "zh": "中文", "jp": "中国語"},
    "jp": {"en": "Japanese", "zh": "日文", "jp": "日本語"},
    "en": {"en": "English", "zh": "英文", "jp": "英語"},
}

_BANNER_TITLES: dict[str, str] = {
    "jp": "お問い合わせありがとうございます",
    "en": "Thank you for contacting TW Connect",
    "zh": "感謝您的來信",
}

_REPLY_HEADERS: dict[str, str] = {
    "jp": "お問い合わせありがとうございます。<strong>1〜2 営業日</strong>以内にご連絡いたします。",
    "en": "Thank you for your message. We will reply within <strong>1–2 business days</strong>.",
    "zh": "感謝您的來信，我們將在 <strong>1–2 個工作日</strong>內回覆您。",
}

_REPLY_HEADERS_TEXT: dict[str, str] = {
    "jp": "お問い合わせありがとうございます。1〜2 営業日以内にご連絡いたします。",
    "en": "Thank you for your message. We will reply within 1–2 business days.",
    "zh": "感謝您的來信，我們將在 1–2 個工作日內回覆您。",
}

# label key -> {lang: label}
_REPLY_LABELS: dict[str, dict[str, str]] = {
    "intro": {"jp": "ご入力内容（抜粋）：", "en": "Summary of your submission:", "zh": "您提供的資料摘要如下："},
    "subject": {"jp": "ご用件", "en": "Subject", "zh": "主旨"},
    "company": {"jp": "会社名", "en": "Company", "zh": "公司"},
    "name": {"jp": "ご氏名", "en": "Name", "zh": "姓名"},
    "email": {"jp": "Email", "en": "Email", "zh": "Email"},
    "phone": {"jp": "お電話", "en": "Phone", "zh": "Phone"},
    "submitted_at": {"jp": "送信日時", "en": "Submitted at", "zh": "送出時間"},
    "preferred_language": {"jp": "ご希望の言語", "en": "Preferred language", "zh": "希望聯絡語言"},
    "summary": {"jp": "メッセージ概要", "en": "Message Summary", "zh": "訊息摘要"},
    "line": {
        "jp": "お急ぎの場合は LINE からもお問い合わせください：",
        "en": "If you need urgent assistance, contact us via LINE:",
        "zh": "若需加速處理，歡迎透過 LINE 聯繫我們：",
    },
}

_FONT = "font-family:'Segoe UI',Roboto,Arial,sans-serif;"
_LABEL_CELL = "padding:6px 0;width:200px;color:#555;font-weight:600;"


def _esc(value: Any) -> str:
    """HTML-escape any value; None renders as ""."""
    return html.escape("" if value is None else str(value), quote=True)


def lang_full_name(code: str, display_lang: str) -> str:
    """Full language name for *code*, written in *display_lang*."""
    return LANG_FULLNAME.get(code, {}).get(display_lang, code)


def _prefixed(prefix: str, subject: str) -> str:
    return f"{prefix} {subject}".strip()


def _html_wrap(header_inner: str, body_inner: str, year: str) -> str:
    return f"""
<div style="{_FONT}background-color:#f7f9fc;padding:32px;color:#333;">
  <div style="max-width:640px;margin:0 auto;background:#fff;border-radius:12px;overflow:hidden;box-shadow:0 3px 8px rgba(0,0,0,0.06);">
    <div style="background:#1C3D5A;padding:20px 28px;">
      {header_inner}
    </div>
    <div style="padding:24px 28px;font-size:14px;line-height:1.7;">
      {body_inner}
    </div>
    <div style="background:#f3f5f8;text-align:center;padding:14px;font-size:12px;color:#777;">© {_esc(year)} TW Connect</div>
  </div>
</div>
"""


# ---------------------------------------------------------------------------
# Internal notification
# ---------------------------------------------------------------------------

def notification_rows(submission: ContactSubmission) -> list[tuple[str, str]]:
    """(label, raw value) pairs shown in the staff notification, in display order."""
    s = submission
    return [
        ("Subject", s.subject),
        ("Name", s.name),
        ("Company", s.company),
        ("Email", s.email),
        ("Phone", s.phone),
        ("Preferred Contact", s.preferred_contact),
        ("Preferred Date/Time", s.submitted_datetime),
        ("Nationality", s.nationality),
        ("Client Type", s.client_type),
        ("Type of Establishment", s.establishment_type),
        ("Parent Company Country", s.parent_company_country),
        ("Preferred Language", lang_full_name(s.reply_lang, "en")),
        ("Site Language", lang_full_name(s.site_lang, "en")),
        ("Time Zone", s.timezone),
        ("Consent", s.consent),
    ]


def compose_notification(
    submission: ContactSubmission,
    attachments: list[ContactAttachment],
    settings: Settings,
    now: datetime,
) -> MailMessage:
    """
    Build the staff notification for one submission.

    Reply-To is the visitor's address when it names a single mailbox, so
    staff can answer straight from their inbox; otherwise MAIL_REPLY_TO.
    """
    rows_html = []
    for label, value in notification_rows(submission):
        if label == "Email" and value:
            cell = (
                f'<a href="mailto:{_esc(value)}" style="color:#1C3D5A;text-decoration:none;">'
                f"{_esc(value)}</a>"
            )
        else:
            cell = _esc(value)
        rows_html.append(f'<tr><td style="{_LABEL_CELL}">{_esc(label)}</td><td>{cell}</td></tr>')

    rows = "".join(rows_html)
    attachment_note = ""
    if attachments:
        names = ", ".join(_esc(a.filename) for a in attachments)
        attachment_note = f'<p style="margin:16px 0 0;color:#555;">Attachments ({len(attachments)}): {names}</p>'

    header = (
        '<h2 style="margin:0;color:#fff;font-weight:600;font-size:20px;">New Contact Submission</h2>'
        f'<div style="margin-top:6px;color:#d5e4f0;font-size:12px;">{_esc(now.isoformat())}</div>'
    )
    body = f"""
      <table style="width:100%;border-collapse:collapse;">
        <tbody>
          {rows}
        </tbody>
      </table>
      <div style="margin:24px 0;border-top:1px solid #e3e6ec;"></div>
      <div>
        <h4 style="margin:0 0 6px;color:#1C3D5A;">Message Summary</h4>
        <p style="white-space:pre-wrap;margin:0;">{_esc(submission.summary)}</p>
      </div>
      {attachment_note}
"""

    text_lines = [f"{label}: {value or '-'}" for label, value in notification_rows(submission)]
    text_lines += ["", "Message Summary:", submission.summary or "-"]

    return MailMessage(
        sender=settings.mail_from,
        to=settings.mail_recipients,
        reply_to=submission.reply_address or settings.mail_reply_to,
        subject=_prefixed(settings.mail_subject_prefix, submission.subject),
        html=_html_wrap(header, body, str(now.year)),
        text="\n".join(text_lines),
        attachments=attachments,
    )


# ---------------------------------------------------------------------------
# Auto-reply
# ---------------------------------------------------------------------------

def _label(key: str, lang: Lang) -> str:
    return _REPLY_LABELS[key][lang]


def _fallback_reply_html(submission: ContactSubmission, lang: Lang, submitted_at: str, line_link: str) -> str:
    s = submission
    details = "<br/>\n".join(
        f"{_esc(_label(key, lang))}：{_esc(value)}"
        for key, value in (
            ("subject", s.subject),
            ("company", s.company),
            ("name", s.name),
            ("email", s.email),
            ("phone", s.phone),
            ("submitted_at", submitted_at),
            ("preferred_language", lang_full_name(lang, lang)),
        )
    )
    return f"""
      <p>{_REPLY_HEADERS[lang]}</p>
      <p>{_esc(_label("intro", lang))}</p>
      <p>
        {details}
      </p>
      <div>
        <h4 style="margin:0 0 6px;color:#1C3D5A;">{_esc(_label("summary", lang))}</h4>
        <p style="white-space:pre-wrap;margin:0;">{_esc(s.summary)}</p>
      </div>
      <p style="margin-top:12px;">{_esc(_label("line", lang))}<br/>
        <a href="{_esc(line_link)}" target="_blank">{_esc(line_link)}</a>
      </p>
"""


def _fallback_reply_text(submission: ContactSubmission, lang: Lang, submitted_at: str, line_link: str) -> str:
    s = submission
    lines = [
        _REPLY_HEADERS_TEXT[lang],
        "",
        _label("intro", lang),
        f"{_label('subject', lang)}：{s.subject}",
        f"{_label('company', lang)}：{s.company}",
        f"{_label('name', lang)}：{s.name}",
        f"{_label('email', lang)}：{s.email}",
        f"{_label('phone', lang)}：{s.phone}",
        f"{_label('submitted_at', lang)}：{submitted_at}",
        "",
        f"{_label('summary', lang)}:",
        s.summary,
        "",
        _label("line", lang),
        line_link,
    ]
    return "\n".join(lines)


def compose_auto_reply(
    submission: ContactSubmission,
    content: AutoReplyContent,
    settings: Settings,
    now: datetime,
) -> MailMessage:
    """
    Build the visitor confirmation.

    Uses the content store's body when there is one; otherwise a built-in
    body in the visitor's language that echoes their name, subject and the
    submission timestamp.

    Raises:
        ValueError: if the submission has no single usable reply address
    """
    recipient = submission.reply_address
    if recipient is None:
        raise ValueError("Submission has no single usable reply address")

    lang = submission.reply_lang
    submitted_at = now.isoformat(timespec="seconds")

    if content.body_html:
        inner = f"<p>{content.body_html}</p>"
        text = content.body_plain_text
    else:
        inner = _fallback_reply_html(submission, lang, submitted_at, settings.line_link)
        text = _fallback_reply_text(submission, lang, submitted_at, settings.line_link)

    header = (
        f'<h2 style="margin:0;color:#fff;font-weight:600;font-size:18px;">'
        f"{_esc(_BANNER_TITLES[lang])}</h2>"
    )
    body = (
        f"{inner}"
        f'<p style="margin-top:14px;color:#65728a;font-size:12px;">{_esc(submitted_at)}</p>'
    )

    return MailMessage(
        sender=settings.mail_from,
        to=[recipient],
        subject=_prefixed(settings.mail_subject_prefix, content.subject),
        html=_html_wrap(header, body, str(now.year)),
        text=text,
    )
