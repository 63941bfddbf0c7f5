"""
Outcome responder.

The browser learns how its submission went only through a 303 redirect back
to the contact page:

  success:  /contact?submitted=1&lang=<lang>
  failure:  /contact?submitted=0&error=<CODE>&lang=<lang>

<CODE> is the short public code of the ErrorKind; raw error text stays in
the server logs.
"""

from urllib.parse import urlencode, urljoin

from fastapi.responses import RedirectResponse

from app.config import Settings
from app.models.contact import Outcome


def build_redirect_url(outcome: Outcome, settings: Settings) -> str:
    if outcome.status == "ok":
        params = {"submitted": "1", "lang": outcome.language}
    else:
        params = {
            "submitted": "0",
            "error": outcome.error_message,
            "lang": outcome.language,
        }
    base = settings.public_base_url.rstrip("/") + "/"
    page = urljoin(base, settings.contact_page_path.lstrip("/"))
    return f"{page}?{urlencode(params)}"


def redirect_response(outcome: Outcome, settings: Settings) -> RedirectResponse:
    return RedirectResponse(build_redirect_url(outcome, settings), status_code=303)
