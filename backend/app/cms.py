"""
Content store client configuration.
Uses Sanity's HTTP query API (GROQ) for the contact page's auto-reply text.
"""

import json
import logging
from typing import Any, Optional, Protocol

import httpx
from fastapi import Depends

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Localized auto-reply fields of the contactPage singleton. Each field is a
# locale object: {"jp": ..., "zh": ..., "en": ...}; body values may be plain
# strings or Portable Text block lists.
AUTO_REPLY_QUERY = """
*[_type == "contactPage"][0]{
  "lang": $lang,
  autoReplySubject,
  autoReplyBody
}
"""


class ContentStore(Protocol):
    async def fetch_auto_reply(self, lang: str) -> Optional[dict]:
        ...

    async def ping(self) -> None:
        ...


class SanityContentStore:
    """
    Minimal async Sanity client.

    Pass *client* to reuse an existing httpx.AsyncClient (tests hand in one
    backed by httpx.MockTransport); otherwise a short-lived client is opened
    per query.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        if not settings.sanity_project_id:
            raise ValueError("SANITY_PROJECT_ID must be set to query the content store")
        self._settings = settings
        self._client = client

    @property
    def query_url(self) -> str:
        host = "apicdn.sanity.io" if self._settings.sanity_use_cdn else "api.sanity.io"
        return (
            f"https://{self._settings.sanity_project_id}.{host}"
            f"/v{self._settings.sanity_api_version}"
            f"/data/query/{self._settings.sanity_dataset}"
        )

    def _headers(self) -> dict[str, str]:
        if not self._settings.sanity_token:
            return {}
        return {"Authorization": f"Bearer {self._settings.sanity_token}"}

    async def query(self, groq: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Run a GROQ query and return its ``result``.

        Query parameters are JSON-encoded and prefixed with ``$`` as the
        Sanity HTTP API expects. A ``None`` result means "no match" and is
        returned as-is.

        Raises:
            httpx.HTTPError: on transport failures or non-2xx responses
        """
        request_params = {"query": groq}
        for key, value in (params or {}).items():
            request_params[f"${key}"] = json.dumps(value)

        if self._client is not None:
            response = await self._client.get(self.query_url, params=request_params, headers=self._headers())
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.query_url, params=request_params, headers=self._headers())

        response.raise_for_status()
        return response.json().get("result")

    async def fetch_auto_reply(self, lang: str) -> Optional[dict]:
        result = await self.query(AUTO_REPLY_QUERY, {"lang": lang})
        if result is not None and not isinstance(result, dict):
            logger.warning(f"Unexpected auto-reply result shape: {type(result).__name__}")
            return None
        return result

    async def ping(self) -> None:
        """Cheapest possible round-trip, used by the health endpoint."""
        await self.query('count(*[_type == "contactPage"])')


def get_content_store(settings: Settings = Depends(get_settings)) -> Optional[ContentStore]:
    """
    FastAPI dependency returning the configured content store.

    Returns None when SANITY_PROJECT_ID is not configured; the auto-reply
    resolver then falls back to its built-in templates.
    """
    if not settings.sanity_project_id:
        return None
    return SanityContentStore(settings)
