"""
Runtime configuration.

Values come from environment variables, optionally loaded from a .env file.
The mail transport, the content store client and the outcome redirect all
read from the same Settings instance, handed out by get_settings().
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024  # 10 MB


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    # SMTP
    mail_host: str = "localhost"
    mail_port: int = 465
    mail_secure: bool = True
    mail_user: str = ""
    mail_pass: str = ""
    mail_from: str = ""
    mail_to: str = ""
    mail_reply_to: str = ""
    mail_subject_prefix: str = ""
    mail_timeout_seconds: Optional[float] = None

    # Sanity content store
    sanity_project_id: str = ""
    sanity_dataset: str = "production"
    sanity_api_version: str = "2025-01-01"
    sanity_token: Optional[str] = None
    sanity_use_cdn: bool = False

    # Site
    public_base_url: str = "http://localhost:3000"
    contact_page_path: str = "/contact"
    max_attachment_bytes: int = _DEFAULT_MAX_ATTACHMENT_BYTES
    line_link: str = "https://line.me/ti/p/@030qreji"

    @property
    def mail_recipients(self) -> list[str]:
        """MAIL_TO may hold several comma-separated addresses."""
        return [addr.strip() for addr in self.mail_to.split(",") if addr.strip()]


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    MAIL_FROM falls back to MAIL_USER and MAIL_REPLY_TO falls back to
    MAIL_FROM, so a minimal deployment only needs host, credentials and
    MAIL_TO.
    """
    mail_user = os.getenv("MAIL_USER", "")
    mail_from = os.getenv("MAIL_FROM") or mail_user
    timeout_raw = os.getenv("MAIL_TIMEOUT_SECONDS", "").strip()

    return Settings(
        mail_host=os.getenv("MAIL_HOST", "localhost"),
        mail_port=_env_int("MAIL_PORT", 465),
        mail_secure=_env_bool("MAIL_SECURE", True),
        mail_user=mail_user,
        mail_pass=os.getenv("MAIL_PASS", ""),
        mail_from=mail_from,
        mail_to=os.getenv("MAIL_TO", ""),
        mail_reply_to=os.getenv("MAIL_REPLY_TO") or mail_from,
        mail_subject_prefix=os.getenv("MAIL_SUBJECT_PREFIX", ""),
        mail_timeout_seconds=float(timeout_raw) if timeout_raw else None,
        sanity_project_id=os.getenv("SANITY_PROJECT_ID", ""),
        sanity_dataset=os.getenv("SANITY_DATASET", "production"),
        sanity_api_version=os.getenv("SANITY_API_VERSION", "2025-01-01"),
        sanity_token=os.getenv("SANITY_READ_TOKEN") or os.getenv("SANITY_API_TOKEN") or None,
        sanity_use_cdn=_env_bool("SANITY_USE_CDN", False),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:3000"),
        contact_page_path=os.getenv("CONTACT_PAGE_PATH", "/contact"),
        max_attachment_bytes=_env_int("MAX_ATTACHMENT_BYTES", _DEFAULT_MAX_ATTACHMENT_BYTES),
        line_link=os.getenv("CONTACT_LINE_LINK", "https://line.me/ti/p/@030qreji"),
    )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency: settings are read once per process."""
    return load_settings()
