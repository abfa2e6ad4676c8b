from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.exceptions import RequestException

from .config import API_BASE, API_KEY, TRACE_ENABLED, logger


class ConfigurationError(RuntimeError):
    """Raised before any network I/O when the client cannot make a call at all."""


class UpstreamError(RuntimeError):
    """Non-2xx status, transport failure or unusable payload from OpticOdds."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


def safe_url(url: str) -> str:
    """Strip query params (may contain API keys) for safe logging."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


class OpticOddsClient:
    """Thin async facade over a `requests.Session`.

    Each GET runs in a worker thread so the event loop keeps serving readers
    while a refresh waits on the network.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str = API_BASE,
        *,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = API_KEY if api_key is None else api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def url_for(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key not configured")

    async def get_json(self, path: str, params: Dict[str, Any] | None = None) -> dict:
        self.ensure_configured()
        url = self.url_for(path)
        return await asyncio.to_thread(self._get, url, dict(params or {}))

    def _get(self, url: str, params: Dict[str, Any]) -> dict:
        headers = {"x-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            r = self._session.get(url, params=params, headers=headers, timeout=self.timeout)
        except RequestException as e:
            raise UpstreamError(str(e), url=safe_url(url)) from e
        if TRACE_ENABLED:
            logger.debug("GET %s status=%s", safe_url(url), r.status_code)
        if not r.ok:
            raise UpstreamError(f"HTTP {r.status_code}: {r.reason}", url=safe_url(url), status=r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError("invalid JSON payload", url=safe_url(url), status=r.status_code) from e
        if not isinstance(data, dict):
            raise UpstreamError("unexpected payload shape", url=safe_url(url), status=r.status_code)
        return data

    def close(self) -> None:
        self._session.close()
