"""
Form normalizer service.

Turns an inbound contact submission into one transport-independent RawForm,
whether the browser posted multipart/form-data (required when files are
attached) or a JSON body.

Nothing raised while decoding the body escapes this module: malformed input
produces an empty RawForm, and downstream code treats missing values as
unset and falls back to defaults.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

MULTIPART_CONTENT_TYPE = "multipart/form-data"


@dataclass
class RawForm:
    """
    Canonical key→value view of one submission.

    fields: string values keyed by field name (first value wins).
    files:  uploaded file parts keyed by field name, in arrival order.
    """
    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, list[Any]] = field(default_factory=dict)

    @property
    def language(self) -> Optional[str]:
        """Raw ``lang`` value, or None when the visitor did not send one."""
        value = self.fields.get("lang")
        return value if value else None


def _to_field_string(value: Any) -> str:
    """
    Project one JSON value to a form-field string.

    Strings pass through, null becomes "", booleans use their JSON spelling,
    numbers use str(), and lists/objects are re-serialized as compact JSON.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def normalize_json_body(body: bytes) -> dict[str, str]:
    """
    Parse a JSON request body into a string-keyed field map.

    A parse failure, an undecodable body, or a top level that is not a JSON
    object all yield an empty map rather than an error.
    """
    if not body:
        return {}
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Contact body is not valid JSON, treating as empty: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(
            f"Contact JSON body is a {type(data).__name__}, not an object; treating as empty"
        )
        return {}

    return {str(key): _to_field_string(value) for key, value in data.items()}


def is_multipart(content_type: str) -> bool:
    return MULTIPART_CONTENT_TYPE in (content_type or "").lower()


async def _read_multipart(request: Request) -> RawForm:
    form = await request.form()
    raw = RawForm()
    for key, value in form.multi_items():
        if isinstance(value, str):
            raw.fields.setdefault(key, value)
        else:
            raw.files.setdefault(key, []).append(value)
    return raw


async def normalize_request(request: Request) -> RawForm:
    """
    Normalize an inbound request into a RawForm.

    Multipart bodies are decoded with Starlette's form parser and taken
    verbatim. Any other content type is read as JSON (JSON cannot carry
    files, so ``files`` is always empty on that path).
    """
    content_type = request.headers.get("content-type", "")

    if is_multipart(content_type):
        try:
            return await _read_multipart(request)
        except Exception as e:
            logger.warning(f"Failed to decode multipart contact body, treating as empty: {e}")
            return RawForm()

    try:
        body = await request.body()
    except Exception as e:
        logger.warning(f"Failed to read contact body, treating as empty: {e}")
        return RawForm()

    return RawForm(fields=normalize_json_body(body))
