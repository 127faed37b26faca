"""Blocking HTTP client shared by every spm network call."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from spm.config import SpmConfig, config as default_config

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """Status code and full body of a GET request."""
    status: int
    content: bytes
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClient:
    """
    Thin wrapper around httpx.Client.

    Sets the spm User-Agent and follows redirects, since release downloads
    are redirected to a CDN. Transport failures propagate as httpx.HTTPError;
    non-2xx answers are returned for the caller to classify.
    """

    def __init__(
        self,
        settings: Optional[SpmConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings or default_config
        client_args = {
            "headers": {"User-Agent": self.settings.user_agent},
            "follow_redirects": True,
        }
        if self.settings.http_timeout is not None:
            client_args["timeout"] = self.settings.http_timeout
        if transport is not None:
            client_args["transport"] = transport
        self._client = httpx.Client(**client_args)

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        logger.debug("GET %s", url)
        response = self._client.get(url, headers=headers)
        logger.debug("GET %s -> %d (%d bytes)", url, response.status_code, len(response.content))
        return HttpResponse(status=response.status_code, content=response.content, url=url)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
