"""
Contact submission pipeline.

Runs one normalized submission through every step and returns an Outcome.
Each step is a rejection point; the first failure ends the run.

Steps:
1. Parse fields into a ContactSubmission (missing required fields are flagged)
2. Extract attachments (size-capped)
3. Compose the staff notification
4. Resolve and compose the auto-reply (only for a single usable visitor address)
5. Send notification, then auto-reply
6. Return the outcome

Expected failures come back as Outcome.failed(kind); the raw detail is
logged here and never leaves the server. Anything unexpected propagates to
the router's outer boundary.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from app.cms import ContentStore
from app.config import Settings
from app.models.contact import ContactSubmission, ErrorKind, Lang, Outcome
from app.services.attachments import AttachmentsTooLargeError, extract_attachments
from app.services.auto_reply import build_auto_reply_content, resolve_auto_reply
from app.services.email_composer import compose_auto_reply, compose_notification
from app.services.form_normalizer import RawForm
from app.services.mail_dispatcher import MailDeliveryError, dispatch
from app.services.mailer import MailTransport

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _fail(request_id: str, lang: Lang, kind: ErrorKind, detail: str) -> Outcome:
    logger.warning(f"[{request_id}] Contact submission failed [{kind.value}]: {detail}")
    return Outcome.failed(lang, kind)


async def process_submission(
    form: RawForm,
    *,
    store: Optional[ContentStore],
    transport: MailTransport,
    settings: Settings,
    clock: Callable[[], datetime] = _utcnow,
    request_id: Optional[str] = None,
) -> Outcome:
    request_id = request_id or uuid.uuid4().hex

    # ── Step 1: Parse ────────────────────────────────────────────────────────
    submission = ContactSubmission.from_fields(form.fields)
    lang = submission.site_lang

    missing = submission.missing_required_fields()
    if missing:
        logger.warning(f"[{request_id}] Submission missing required fields: {', '.join(missing)}")

    logger.info(
        f"[{request_id}] Processing contact submission lang={lang} "
        f"reply_lang={submission.reply_lang} email_domain={submission.email_domain}"
    )

    # ── Step 2: Attachments ──────────────────────────────────────────────────
    try:
        attachments = await extract_attachments(form, settings.max_attachment_bytes)
    except AttachmentsTooLargeError as e:
        return _fail(request_id, lang, ErrorKind.attachments_too_large, str(e))

    # ── Step 3: Compose notification ─────────────────────────────────────────
    now = clock()
    notification = compose_notification(submission, attachments, settings, now)
    if not notification.to:
        return _fail(request_id, lang, ErrorKind.mail_failed, "MAIL_TO is not configured")

    # ── Step 4: Resolve + compose auto-reply ─────────────────────────────────
    auto_reply = None
    if submission.reply_address:
        template = await resolve_auto_reply(store, submission.reply_lang)
        auto_reply = compose_auto_reply(
            submission, build_auto_reply_content(template), settings, now
        )

    # ── Step 5: Send ─────────────────────────────────────────────────────────
    try:
        report = await dispatch(transport, notification, auto_reply, request_id=request_id)
    except MailDeliveryError as e:
        return _fail(request_id, lang, ErrorKind.mail_failed, str(e))

    logger.info(
        f"[{request_id}] Contact submission done: attachments={len(attachments)} "
        f"auto_reply_sent={report.auto_reply_sent}"
    )
    return Outcome.ok(lang)
