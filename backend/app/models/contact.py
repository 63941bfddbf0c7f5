"""
Pydantic models for the contact-form submission pipeline.

Models:
  ContactSubmission   the visitor's normalized form fields
  ContactAttachment   one uploaded file, already read into memory
  AutoReplyContent    localized auto-reply subject/body for one request
  Outcome             terminal state of the pipeline, drives the redirect

None of these outlive the request that created them.
"""

import re
from email.utils import getaddresses
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

Lang = Literal["jp", "zh", "en"]

SUPPORTED_LANGS: tuple[str, ...] = ("jp", "zh", "en")
DEFAULT_LANG: Lang = "jp"

REQUIRED_FIELDS: tuple[str, ...] = ("name", "email", "phone")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def resolve_lang(raw: Optional[str], default: Lang = DEFAULT_LANG) -> Lang:
    """
    Whitelist a language tag.

    Matching is case-insensitive and ignores surrounding whitespace. Anything
    outside SUPPORTED_LANGS (including None and "") resolves to *default*.
    """
    key = (raw or "").strip().lower()
    if key in SUPPORTED_LANGS:
        return key  # type: ignore[return-value]
    return default


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class ContactSubmission(BaseModel):
    """
    Canonical contact-form submission.

    Field names follow the form's wire names through aliases (camelCase on
    the wire, snake_case in Python). Unknown keys are ignored. Required
    fields default to "" so a partial submission still reaches staff;
    callers check missing_required_fields() and flag rather than reject.
    """

    model_config = {"populate_by_name": True, "extra": "ignore"}

    name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    subject: str = "Contact form"
    summary: str = ""
    preferred_contact: str = Field("", alias="preferredContact")
    submitted_datetime: str = Field("", alias="datetime")
    consent: str = ""
    lang: str = ""
    timezone: str = ""

    # Fields carried by the current site form
    nationality: str = ""
    client_type: str = Field("", alias="clientType")
    establishment_type: str = Field("", alias="establishmentType")
    parent_company_country: str = Field("", alias="parentCompanyCountry")
    preferred_language: str = Field("", alias="preferredLanguage")

    @classmethod
    def from_fields(cls, fields: dict[str, str]) -> "ContactSubmission":
        return cls.model_validate(fields)

    @property
    def site_lang(self) -> Lang:
        """Language of the page the visitor submitted from; used for the redirect."""
        return resolve_lang(self.lang)

    @property
    def reply_lang(self) -> Lang:
        """Language of the auto-reply: preferredLanguage when valid, else the site language."""
        return resolve_lang(self.preferred_language, default=self.site_lang)

    @property
    def reply_address(self) -> Optional[str]:
        """
        The visitor's mailbox when ``email`` names exactly one address.

        "Jane <jane@x.com>" yields "jane@x.com". Lists such as
        "a@x.com, b@y.com", values with control characters and anything
        that does not look like a single local@domain yield None, so the
        auto-reply can only ever go to one recipient.
        """
        raw = self.email.strip()
        if not raw or _CONTROL_CHARS.search(raw) or "," in raw or ";" in raw:
            return None
        addresses = [addr for _, addr in getaddresses([raw]) if addr]
        if len(addresses) != 1:
            return None
        addr = addresses[0]
        if addr.count("@") != 1 or any(ch.isspace() for ch in addr):
            return None
        local, domain = addr.split("@")
        if not local or not domain:
            return None
        return addr

    @property
    def email_domain(self) -> Optional[str]:
        if "@" not in self.email:
            return None
        return self.email.rsplit("@", 1)[-1]

    def missing_required_fields(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f).strip()]


class ContactAttachment(BaseModel):
    """A single uploaded file, already buffered to raw bytes."""

    filename: str
    content: bytes
    content_type: str


# ---------------------------------------------------------------------------
# Auto-reply
# ---------------------------------------------------------------------------

class AutoReplyContent(BaseModel):
    """
    Localized auto-reply content resolved for one request.

    body_plain_text is the flattened rich-text body from the content store;
    body_html is derived from it. Both are empty when the store had nothing,
    which tells the composer to use its built-in fallback body.
    """

    subject: str
    body_plain_text: str = ""
    body_html: str = ""


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    """Failure categories that can end the pipeline."""

    attachments_too_large = "attachments_too_large"
    mail_failed = "mail_failed"
    internal_error = "internal_error"

    @property
    def public_code(self) -> str:
        """Short, non-leaking code placed in the redirect's ``error`` parameter."""
        return self.value.upper()


class Outcome(BaseModel):
    status: Literal["ok", "failed"]
    language: Lang = DEFAULT_LANG
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, language: Lang) -> "Outcome":
        return cls(status="ok", language=language)

    @classmethod
    def failed(cls, language: Lang, kind: ErrorKind) -> "Outcome":
        return cls(status="failed", language=language, error_kind=kind)

    @property
    def error_message(self) -> Optional[str]:
        if self.status != "failed":
            return None
        return (self.error_kind or ErrorKind.internal_error).public_code
