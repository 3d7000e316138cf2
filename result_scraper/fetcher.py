"""
Resilient fetching component for the results portal.
Handles HTTP requests with bounded retries and exponential backoff.
"""

import time
import logging
import requests
from typing import Any, Callable, Optional
from tenacity import (
    Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type, retry_if_not_exception_type,
    before_sleep_log,
)

from .config_manager import ScraperSettings, RetryPolicy
from .exceptions import NetworkError, PermanentNetworkError
from .models import FetchOutcome


class ResultFetcher:
    """
    Network-facing component responsible for all HTTP interactions.
    Separates confirmed "no record" pages from transient failures so the
    retry budget is only spent on the latter.
    """

    def __init__(self, settings: ScraperSettings, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self.session = session or requests.Session()
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

        if session is None:
            self._setup_session()

    def _setup_session(self):
        """Configure the requests session with browser-like headers."""
        self.session.headers.update({
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
            'Connection': 'keep-alive',
        })
        if self.settings.user_agent:
            self.session.headers['User-Agent'] = self.settings.user_agent

    def _retrying(self, max_retries: int, initial_delay_ms: float, backoff_factor: float) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=initial_delay_ms / 1000.0, exp_base=backoff_factor),
            retry=retry_if_exception_type(NetworkError) & retry_if_not_exception_type(PermanentNetworkError),
            sleep=self.sleep,
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True,
        )

    def _get(self, url: str, retry_client_errors: bool = True) -> requests.Response:
        try:
            self.logger.debug(f"Fetching: {url}")
            response = self.session.get(url, timeout=self.settings.timeout)
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if not retry_client_errors and status is not None and 400 <= status < 500:
                self.logger.warning(f"Request rejected by {url}: {e}")
                raise PermanentNetworkError(f"Failed to fetch {url}: {e}")
            self.logger.warning(f"Network error fetching {url}: {e}")
            raise NetworkError(f"Failed to fetch {url}: {e}")
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"Network error fetching {url}: {e}")
            raise NetworkError(f"Failed to fetch {url}: {e}")

    def _get_page(self, url: str) -> FetchOutcome:
        response = self._get(url)
        if response.status_code == 200 and self.settings.not_found_marker not in response.text:
            self.logger.info(f"Successfully fetched {url} ({len(response.content)} bytes)")
            return FetchOutcome.success(response.text)
        self.logger.debug(f"No record found at {url}")
        return FetchOutcome.not_found()

    def fetch(self, url: str, max_retries: Optional[int] = None, initial_delay_ms: Optional[float] = None,
              backoff_factor: Optional[float] = None) -> FetchOutcome:
        """
        Fetch a result page, retrying transient failures.

        Args:
            url: The URL to fetch
            max_retries: Total attempts (defaults to the configured policy)
            initial_delay_ms: Delay before the second attempt, in milliseconds
            backoff_factor: Multiplier applied to the delay after each retry

        Returns:
            FetchOutcome: success with the page body, not-found when the portal
            reports no record, or an error carrying the last failure message
        """
        policy: RetryPolicy = self.settings.retry
        retrying = self._retrying(
            max_retries if max_retries is not None else policy.max_retries,
            initial_delay_ms if initial_delay_ms is not None else policy.initial_delay_ms,
            backoff_factor if backoff_factor is not None else policy.backoff_factor,
        )

        try:
            return retrying(self._get_page, url)
        except NetworkError as e:
            self.logger.error(f"Giving up on {url}: {e}")
            return FetchOutcome.failure(str(e))

    def fetch_json(self, url: str) -> Any:
        """
        Fetch a JSON document from a peer service, retrying transient failures.
        Client errors (4xx) fail on the first attempt.

        Raises:
            NetworkError: If the request still fails after all retries or the
            body is not valid JSON
        """
        policy = self.settings.retry
        retrying = self._retrying(policy.max_retries, policy.initial_delay_ms, policy.backoff_factor)
        response = retrying(self._get, url, retry_client_errors=False)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}")

    def close(self):
        """Clean up resources."""
        self.session.close()
