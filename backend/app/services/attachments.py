"""
Attachment extraction service.

Collects uploaded files from a RawForm into ContactAttachment objects.

Two field names are accepted for backward compatibility:
  attachments  current form field (repeatable)
  attachment   legacy single-file field (also repeatable)

Entries under ``attachments`` come first, then ``attachment``, each in
arrival order. This is the only place request-sized binary data is buffered
into memory, so the total size is capped here.
"""

import inspect
import logging
from typing import Any, Optional

from app.models.contact import ContactAttachment
from app.services.form_normalizer import RawForm

logger = logging.getLogger(__name__)

ATTACHMENT_FIELDS: tuple[str, ...] = ("attachments", "attachment")

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


class AttachmentsTooLargeError(Exception):
    """Raised when the combined attachment size exceeds the configured limit."""

    def __init__(self, total_bytes: int, max_bytes: int):
        self.total_bytes = total_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"Attachments total {total_bytes} bytes, limit is {max_bytes} bytes"
        )


def _is_usable_part(part: Any) -> bool:
    """A part needs a read() method, a non-empty filename and a content_type attribute."""
    if not callable(getattr(part, "read", None)):
        return False
    if not getattr(part, "filename", None):
        return False
    return hasattr(part, "content_type")


async def _read_part(part: Any) -> bytes:
    """Read a part's body; supports both async (UploadFile) and sync file-likes."""
    data = part.read()
    if inspect.isawaitable(data):
        data = await data
    if isinstance(data, str):
        data = data.encode("utf-8")
    return bytes(data)


async def extract_attachments(
    form: RawForm,
    max_total_bytes: Optional[int] = None,
) -> list[ContactAttachment]:
    """
    Return every usable uploaded file, plural field first.

    Parts without a readable body, filename or content type are skipped
    rather than failing the submission. An empty content type falls back to
    application/octet-stream.

    Raises:
        AttachmentsTooLargeError: if max_total_bytes is set and the summed
            size of accepted parts exceeds it. Submissions are rejected,
            never truncated.
    """
    attachments: list[ContactAttachment] = []
    total_bytes = 0

    for field_name in ATTACHMENT_FIELDS:
        for part in form.files.get(field_name, []):
            if not _is_usable_part(part):
                logger.debug(f"Skipping unusable part under '{field_name}': {type(part).__name__}")
                continue

            content = await _read_part(part)
            total_bytes += len(content)
            if max_total_bytes is not None and total_bytes > max_total_bytes:
                raise AttachmentsTooLargeError(total_bytes, max_total_bytes)

            attachments.append(
                ContactAttachment(
                    filename=part.filename,
                    content=content,
                    content_type=part.content_type or _DEFAULT_CONTENT_TYPE,
                )
            )

    return attachments
