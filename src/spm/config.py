"""Configuration for sqlite-package-manager."""

import logging
import os
from typing import Optional
from pydantic import BaseModel, Field

from spm import __version__

logger = logging.getLogger(__name__)


def _timeout_from_env() -> Optional[float]:
    value = os.getenv("SPM_HTTP_TIMEOUT", "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring SPM_HTTP_TIMEOUT=%r, expected a number of seconds", value)
        return None


class SpmConfig(BaseModel):
    """Settings shared by every spm command."""

    # Hosting site
    github_host: str = "github.com"
    github_api_url: str = Field(
        default_factory=lambda: os.getenv("SPM_GITHUB_API_URL", "https://api.github.com").rstrip("/")
    )
    github_token: Optional[str] = Field(default_factory=lambda: os.getenv("GITHUB_TOKEN") or None)

    # HTTP
    user_agent: str = (
        f"sqlite-package-manager/{__version__} "
        "(https://github.com/asg017/sqlite-package-manager)"
    )
    # None keeps httpx's default timeout
    http_timeout: Optional[float] = Field(default_factory=_timeout_from_env)

    # Project layout
    manifest_filename: str = "spm.toml"
    lockfile_filename: str = "spm.lock"
    extensions_dirname: str = "sqlite_extensions"

    # Published alongside every release
    release_manifest_filename: str = "spm.json"


config = SpmConfig()
