"""
Contact form router.

Endpoints:
  POST /   accept a contact submission (multipart/form-data or JSON) and
           answer with a 303 redirect back to the contact page

The browser never sees a JSON response from this endpoint; the redirect's
query string (submitted / lang / error) is the only outcome signal.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.cms import ContentStore, get_content_store
from app.config import Settings, get_settings
from app.models.contact import DEFAULT_LANG, ErrorKind, Lang, Outcome, resolve_lang
from app.services.contact_pipeline import process_submission
from app.services.form_normalizer import RawForm, normalize_request
from app.services.mailer import MailTransport, get_mail_transport
from app.services.outcome import redirect_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: Optional[ContentStore] = Depends(get_content_store),
    transport: MailTransport = Depends(get_mail_transport),
) -> RedirectResponse:
    """
    Run the contact pipeline for one submission.

    This is the single outer error boundary: anything the pipeline did not
    turn into an Outcome itself is logged with its traceback and becomes a
    generic failure redirect in the best-known language.
    """
    request_id = uuid.uuid4().hex
    lang: Lang = DEFAULT_LANG

    try:
        form: RawForm = await normalize_request(request)
        lang = resolve_lang(form.language)
        outcome = await process_submission(
            form,
            store=store,
            transport=transport,
            settings=settings,
            request_id=request_id,
        )
    except Exception:
        logger.exception(f"[{request_id}] Unhandled error in contact submission")
        outcome = Outcome.failed(lang, ErrorKind.internal_error)

    return redirect_response(outcome, settings)
