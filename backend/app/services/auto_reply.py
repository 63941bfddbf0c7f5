"""
Localized auto-reply resolver.

Reads the auto-reply subject/body from the content store and picks the
visitor's language, falling back through the other locales in a fixed order:

  requested   tried in order
  ---------   --------------
  en          en, zh, jp
  jp          jp, zh, en
  zh          zh, jp, en
  (other)     same as jp

Subject and body are resolved independently. When nothing is found, or the
store cannot be reached, the subject falls back to a built-in localized
default and the body comes back empty, which tells the composer to use its
own fallback body. This module never raises.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.cms import ContentStore
from app.models.contact import AutoReplyContent, Lang, resolve_lang
from app.services.rich_text import flatten_rich_text, plain_text_to_html

logger = logging.getLogger(__name__)

FALLBACK_ORDER: dict[str, tuple[str, str, str]] = {
    "en": ("en", "zh", "jp"),
    "jp": ("jp", "zh", "en"),
    "zh": ("zh", "jp", "en"),
}

DEFAULT_SUBJECTS: dict[str, str] = {
    "jp": "お問い合わせ受付のお知らせ",
    "en": "We received your inquiry",
    "zh": "我們已收到您的表單",
}


@dataclass
class ResolvedTemplate:
    subject: str
    body: str  # flattened plain text; "" means "use the built-in body"

    @property
    def has_body(self) -> bool:
        return bool(self.body)


def fallback_order(lang: Optional[str]) -> tuple[str, str, str]:
    return FALLBACK_ORDER[resolve_lang(lang)]


def pick_localized(locale_field: Any, lang: Optional[str]) -> str:
    """
    Return the first non-empty locale value of *locale_field* as plain text.

    *locale_field* is a {"jp": ..., "zh": ..., "en": ...} object whose
    values are strings or rich-text block lists. Values that flatten to
    whitespace only count as empty. Returns "" when no locale has content
    or the field is not a locale object at all.
    """
    if not isinstance(locale_field, dict):
        return ""
    for code in fallback_order(lang):
        text = flatten_rich_text(locale_field.get(code))
        if text.strip():
            return text
    return ""


async def resolve_auto_reply(store: Optional[ContentStore], lang: Optional[str]) -> ResolvedTemplate:
    """
    Fetch and localize the auto-reply template for *lang*.

    A missing store, a fetch error, an empty document or empty fields all
    degrade to the built-in subject and an empty body.
    """
    resolved: Lang = resolve_lang(lang)
    default_subject = DEFAULT_SUBJECTS[resolved]

    if store is None:
        logger.info("No content store configured; using built-in auto-reply")
        return ResolvedTemplate(subject=default_subject, body="")

    try:
        doc = await store.fetch_auto_reply(resolved)
    except Exception as e:
        logger.warning(f"Auto-reply fetch failed for lang={resolved}, using built-in template: {e}")
        return ResolvedTemplate(subject=default_subject, body="")

    if not doc or not isinstance(doc, dict):
        logger.info(f"No auto-reply content in store for lang={resolved}")
        return ResolvedTemplate(subject=default_subject, body="")

    subject = pick_localized(doc.get("autoReplySubject"), resolved).strip()
    body = pick_localized(doc.get("autoReplyBody"), resolved)

    return ResolvedTemplate(subject=subject or default_subject, body=body)


def build_auto_reply_content(template: ResolvedTemplate) -> AutoReplyContent:
    """Derive the HTML body from the resolved plain-text body."""
    return AutoReplyContent(
        subject=template.subject,
        body_plain_text=template.body,
        body_html=plain_text_to_html(template.body),
    )
