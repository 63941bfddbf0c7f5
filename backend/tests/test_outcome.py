"""
Unit tests for the outcome responder and the Outcome / ErrorKind models.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from app.config import Settings
from app.models.contact import ErrorKind, Outcome
from app.services.outcome import build_redirect_url, redirect_response

SETTINGS = Settings(public_base_url="https://twconnect.example", contact_page_path="/contact")


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestBuildRedirectUrl:
    """Test build_redirect_url()."""

    @pytest.mark.parametrize("lang", ["jp", "zh", "en"])
    def test_success(self, lang):
        url = build_redirect_url(Outcome.ok(lang), SETTINGS)

        assert url == f"https://twconnect.example/contact?submitted=1&lang={lang}"

    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_failure_carries_public_code(self, kind):
        url = build_redirect_url(Outcome.failed("zh", kind), SETTINGS)

        assert url.startswith("https://twconnect.example/contact?")
        assert _query(url) == {"submitted": "0", "error": kind.public_code, "lang": "zh"}

    def test_failure_parameter_order(self):
        url = build_redirect_url(Outcome.failed("en", ErrorKind.mail_failed), SETTINGS)
        assert url.endswith("?submitted=0&error=MAIL_FAILED&lang=en")

    def test_success_has_no_error_parameter(self):
        assert "error" not in _query(build_redirect_url(Outcome.ok("jp"), SETTINGS))

    @pytest.mark.parametrize(
        "base,path",
        [
            ("https://twconnect.example/", "/contact"),
            ("https://twconnect.example", "contact"),
            ("https://twconnect.example/", "contact"),
        ],
    )
    def test_slashes_are_normalized(self, base, path):
        settings = Settings(public_base_url=base, contact_page_path=path)

        url = build_redirect_url(Outcome.ok("en"), settings)

        assert url == "https://twconnect.example/contact?submitted=1&lang=en"

    def test_localized_contact_path(self):
        settings = Settings(public_base_url="https://twconnect.example", contact_page_path="/en/contact")

        url = build_redirect_url(Outcome.ok("en"), settings)

        assert url == "https://twconnect.example/en/contact?submitted=1&lang=en"


class TestRedirectResponse:

    def test_uses_303_see_other(self):
        response = redirect_response(Outcome.ok("jp"), SETTINGS)

        assert response.status_code == 303
        assert response.headers["location"] == "https://twconnect.example/contact?submitted=1&lang=jp"


class TestOutcomeModel:

    def test_ok_has_no_error_message(self):
        assert Outcome.ok("en").error_message is None

    def test_failed_error_message_is_public_code(self):
        outcome = Outcome.failed("en", ErrorKind.attachments_too_large)
        assert outcome.error_message == "ATTACHMENTS_TOO_LARGE"

    def test_failed_without_kind_reports_internal_error(self):
        assert Outcome(status="failed").error_message == "INTERNAL_ERROR"

    def test_default_language_is_japanese(self):
        assert Outcome(status="ok").language == "jp"
