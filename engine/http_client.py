import logging
import re
import time
from http.cookiejar import DefaultCookiePolicy
from typing import Any

import requests

from config.settings import Settings

logger = logging.getLogger(__name__)

_REDACT_PARAM_RE = re.compile(r"((?:api_key|apikey)=)[^&\s'\"]+", re.IGNORECASE)
_ERROR_BODY_LIMIT = 300
# Client errors that are still worth another try.
_RETRYABLE_CLIENT_STATUSES = {408, 429}


def redact_url(url: str) -> str:
    """Mask ``api_key``/``apikey`` values in a URL or in any text quoting one."""
    return _REDACT_PARAM_RE.sub(r"\1[REDACTED]", str(url or ""))


def is_transient_error(exc: BaseException) -> bool:
    """True for failures a retry can fix: timeouts, dropped connections, 5xx, 408 and 429.

    Other 4xx statuses and undecodable or unexpected payloads are permanent.
    """
    if isinstance(exc, ValueError):
        return False
    if isinstance(exc, requests.HTTPError):
        status = getattr(exc.response, "status_code", None)
        if status is None:
            return True
        return status >= 500 or status in _RETRYABLE_CLIENT_STATUSES
    return True


class HttpClient:
    """Outbound GET client shared by metadata providers and the scraper.

    Holds a pooled ``requests.Session`` configured once from settings with the
    user agent, optional proxy and a fixed per-call timeout. Non-200 responses
    raise ``requests.HTTPError`` so callers can retry or degrade uniformly.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.timeout_seconds = settings.timeout_seconds
        self.debug = settings.http_debug
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": settings.user_agent})
        # The session is shared by concurrent requests; never keep cookies between them.
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        if settings.proxy_url:
            self._session.proxies.update({"http": settings.proxy_url, "https": settings.proxy_url})

    def get(self, url: str, *, params: dict[str, Any] | None = None) -> requests.Response:
        started = time.monotonic()
        if self.debug:
            logger.info(f"[HTTP][REQ] GET {redact_url(url)} params={_redact_params(params)}")
        try:
            resp = self._session.get(url, params=params or None, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            if self.debug:
                elapsed_ms = int((time.monotonic() - started) * 1000)
                logger.warning(f"[HTTP][ERR] NO_RESP GET {redact_url(url)} in {elapsed_ms}ms :: {redact_url(str(exc))}")
            raise
        elapsed_ms = int((time.monotonic() - started) * 1000)
        status = int(resp.status_code)
        if status != 200:
            if self.debug:
                body = (resp.text or "")[:_ERROR_BODY_LIMIT]
                logger.warning(f"[HTTP][ERR] {status} GET {redact_url(resp.url)} in {elapsed_ms}ms :: {body}")
            raise requests.HTTPError(f"HTTP {status} for {redact_url(resp.url)}", response=resp)
        if self.debug:
            logger.info(f"[HTTP][RES] {status} GET {redact_url(resp.url)} in {elapsed_ms}ms")
        return resp

    def get_json(self, url: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        resp = self.get(url, params=params)
        payload = resp.json() if resp.content else {}
        if not isinstance(payload, dict):
            raise ValueError(f"unexpected JSON payload type {type(payload).__name__}")
        return payload

    def get_text(self, url: str, *, params: dict[str, Any] | None = None) -> str:
        return self.get(url, params=params).text


def _redact_params(params):
    if not params:
        return {}
    return {
        key: ("[REDACTED]" if key.lower() in {"api_key", "apikey"} else value)
        for key, value in params.items()
    }
