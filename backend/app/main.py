"""
Contact API
FastAPI application behind the marketing site's contact form.
"""

import logging
import os
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.cms import ContentStore, get_content_store
from app.routers import contact

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Contact API",
    description="Contact-form submissions with localized auto-replies",
    version="0.1.0",
)


DEV_ORIGINS = ["http://localhost:3000"]


def get_cors_origins() -> List[str]:
    """
    Allowed CORS origins: the local Next.js dev server plus CORS_ORIGINS.

    CORS_ORIGINS is a comma-separated list, e.g.
        CORS_ORIGINS=https://www.twconnects.com,https://preview.twconnects.com
    Order is kept and duplicates dropped.
    """
    configured = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    return list(dict.fromkeys(DEV_ORIGINS + configured))


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(contact.router, prefix="/api/contact", tags=["contact"])


@app.get("/")
async def root():
    return {"message": "Contact API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/cms")
async def health_cms(store: Optional[ContentStore] = Depends(get_content_store)):
    """
    Test the content store connection.

    Returns 503 when the store is not configured or cannot be reached.
    Submissions still succeed in both cases (auto-replies fall back to the
    built-in templates), so this is informational only.
    """
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Content store unavailable: SANITY_PROJECT_ID is not configured",
        )

    try:
        await store.ping()
        return {"status": "ok", "cms": "reachable"}
    except httpx.HTTPError as exc:
        logger.error(f"Content store health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Content store check failed: {str(exc)}",
        )
