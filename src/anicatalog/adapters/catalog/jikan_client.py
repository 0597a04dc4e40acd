"""
Jikan v4 REST client.

Jikan serves MyAnimeList data and enforces a tight rate limit, so every
request goes through a minimum-gap throttle in addition to the urllib3 retry
policy for 429 and 5xx answers.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import requests
from pydantic import ValidationError as PydanticValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...infra.settings import settings
from ...shared.schemas import CatalogPage, CatalogRecord
from .base import CatalogNotFoundError, CatalogResponseError, CatalogTransientError

logger = logging.getLogger(__name__)


class RequestThrottle:
    """Enforces a minimum gap between consecutive requests."""

    def __init__(
        self,
        min_gap_sec: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_gap = min_gap_sec
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None
        self._lock = threading.Lock()
        self.total_wait = 0.0

    def acquire(self) -> None:
        """Block until the next request may be sent."""
        with self._lock:
            if self._last_request is not None:
                remaining = self.min_gap - (self._clock() - self._last_request)
                if remaining > 0:
                    self.total_wait += remaining
                    self._sleep(remaining)
            self._last_request = self._clock()


class JikanClient:
    """Catalog source backed by the public Jikan API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        throttle: RequestThrottle | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or settings.catalog_base_url).strip().rstrip("/")
        self.timeout = timeout if timeout is not None else settings.catalog_request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.catalog_max_retries
        self.throttle = throttle or RequestThrottle(settings.catalog_request_delay_ms / 1000.0)
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"Accept": "application/json", "User-Agent": "anicatalog/0.1"})
        return session

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        self.throttle.acquire()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise CatalogTransientError(f"Timed out fetching {path}: {e}") from e
        except requests.RequestException as e:
            raise CatalogTransientError(f"Failed to fetch {path}: {e}") from e

        if response.status_code == 404:
            raise CatalogNotFoundError(f"{path} not found")
        if response.status_code == 429 or response.status_code >= 500:
            raise CatalogTransientError(f"{path} answered HTTP {response.status_code}")
        if response.status_code >= 400:
            raise CatalogResponseError(f"{path} answered HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogResponseError(f"{path} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise CatalogResponseError(f"{path} returned an unexpected payload")
        return payload

    def get_top_page(self, page: int) -> CatalogPage:
        payload = self._get_json("/top/anime", params={"page": page})
        try:
            listing = CatalogPage.from_api(page, payload)
        except PydanticValidationError as e:
            raise CatalogResponseError(f"Invalid top listing page {page}: {e}") from e
        logger.debug("Fetched top page %s/%s (%s items)", page, listing.last_page, len(listing.items))
        return listing

    def get_full_record(self, external_id: int) -> CatalogRecord:
        payload = self._get_json(f"/anime/{external_id}/full")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise CatalogResponseError(f"Record {external_id} has no data object")
        try:
            return CatalogRecord.model_validate(data)
        except PydanticValidationError as e:
            raise CatalogResponseError(f"Invalid record {external_id}: {e}") from e
