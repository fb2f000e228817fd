"""
Shared HTTP plumbing for the content API clients.
"""

import threading
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import constants as c
from .logging import APIError, get_logger, log_api_call

logger = get_logger(__name__)


def create_retry_session(
    retries: int = c.HTTP_RETRY_COUNT,
    backoff_factor: float = c.HTTP_RETRY_BACKOFF_FACTOR,
    status_forcelist: tuple = (500, 502, 503, 504),
    allowed_methods: Optional[frozenset] = None,
) -> requests.Session:
    """
    Creates a requests session with retry logic.

    Only idempotent methods are retried unless `allowed_methods` says otherwise.
    """
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=allowed_methods or Retry.DEFAULT_ALLOWED_METHODS,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": c.HTTP_USER_AGENT})
    return session


class RateLimiter:
    """Enforces a minimum interval between calls, shared across threads."""

    def __init__(self, min_interval: float):
        self.min_interval = min_interval
        self._last_call = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            wait_time = self.min_interval - (time.monotonic() - self._last_call)
            if wait_time > 0:
                time.sleep(wait_time)
            self._last_call = time.monotonic()


class JsonApiClient:
    """
    Base class for JSON-over-HTTP clients.

    Subclasses set `name` and call `_get_json` / `_post_json`; every transport
    or HTTP error surfaces as `APIError` so callers only handle one type.
    """

    name = "api"
    retry_methods: Optional[frozenset] = None

    def __init__(
        self,
        base_url: str,
        timeout: int = c.HTTP_TIMEOUT_SECONDS,
        rate_limit: float = 0.0,
        retries: int = c.HTTP_RETRY_COUNT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_retry_session(retries=retries, allowed_methods=self.retry_methods)
        self.rate_limiter = RateLimiter(rate_limit) if rate_limit > 0 else None

    def _url(self, path: str) -> str:
        if not path:
            return self.base_url
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        if self.rate_limiter:
            self.rate_limiter.wait()

        url = self._url(path)
        log_api_call(url, method, kwargs.get("params"))
        try:
            response = self.session.request(method, url, timeout=kwargs.pop("timeout", self.timeout), **kwargs)
        except requests.RequestException as e:
            raise APIError(f"{self.name} request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise APIError(
                f"{self.name} returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        response = self._request("GET", path, params=params, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"{self.name} returned invalid JSON for {path}") from e

    def _post_json(self, path: str, payload: Dict[str, Any], **kwargs) -> Any:
        response = self._request("POST", path, json=payload, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"{self.name} returned invalid JSON for {path}") from e
