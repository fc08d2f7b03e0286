"""requests-based Reddit transport with rate limiting and retries."""

import logging
import time
from typing import Optional

import requests

from redditpost.adapters.transport import Transport
from redditpost.core.exceptions import RequestFailedError, RateLimitError


logger = logging.getLogger("redditpost")

# App version for User-Agent
_APP_VERSION = "1.0.0"
DEFAULT_USER_AGENT = f"python:redditpost:v{_APP_VERSION} (by /u/redditpost)"


class RequestPacer:
    """Keeps requests at least `interval_sec` apart and sizes retry delays.

    Delays double per attempt; a wait reported by the server wins when it
    is longer.
    """

    def __init__(self, interval_sec: float = 2.0, retries: int = 3):
        self.interval_sec = interval_sec
        self.retries = retries
        self._next_slot: float = 0.0

    @property
    def attempts(self) -> int:
        return self.retries + 1

    def throttle(self) -> None:
        """Block until the next request slot, then claim it."""
        now = time.monotonic()
        if now < self._next_slot:
            logger.debug(f"Pacing: sleeping {self._next_slot - now:.1f}s")
            time.sleep(self._next_slot - now)
            now = self._next_slot
        self._next_slot = now + self.interval_sec

    def retry_delay(self, attempt: int, reported: Optional[float] = None) -> float:
        delay = self.interval_sec * (2 ** attempt)
        if reported is not None:
            delay = max(delay, reported)
        return delay


def is_retryable(method: str, error: requests.RequestException) -> bool:
    """GETs are retried on any transport failure. Other methods only when the
    connection was never established, so the server cannot have acted on them."""
    if method == "GET":
        return True
    return isinstance(error, requests.ConnectTimeout)


def parse_wait_seconds(headers) -> Optional[float]:
    """Read the server-reported wait from Retry-After or x-ratelimit-reset."""
    for name in ("Retry-After", "x-ratelimit-reset"):
        value = headers.get(name)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric {name} header: {value!r}")
    return None


class RequestsTransport(Transport):
    """Sends Reddit API calls over a shared requests.Session."""

    BASE_URL = "https://www.reddit.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        request_interval_sec: float = 2.0,
        max_retries: int = 3,
        timeout_sec: float = 30,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._pacer = RequestPacer(request_interval_sec, max_retries)
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })

    def get(self, path: str, params: Optional[dict] = None) -> dict | list:
        query = {"raw_json": 1}
        if params:
            query.update(params)
        return self._request("GET", path, params=query)

    def post(self, path: str, form: dict) -> dict | list:
        return self._request("POST", path, data=form)

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return self._base_url + path

    def _request(self, method: str, path: str, params: Optional[dict] = None,
                 data: Optional[dict] = None) -> dict | list:
        """Send one API call, pacing and retrying as allowed.

        429 is retried for every method since Reddit refused the call.
        Transport failures and 5xx are retried only when is_retryable()
        says the call cannot have taken effect.
        """
        url = self._url(path)
        last_error = None
        for attempt in range(self._pacer.attempts):
            retries_left = attempt < self._pacer.retries
            self._pacer.throttle()
            logger.debug(f"{method} {url} (attempt {attempt + 1})")
            try:
                response = self._session.request(
                    method, url, params=params, data=data, timeout=self._timeout,
                )
                if response.status_code != 429:
                    return self._decode(response, path)
            except requests.RequestException as e:
                last_error = e
                if not (retries_left and is_retryable(method, e)):
                    break
                delay = self._pacer.retry_delay(attempt)
                logger.warning(f"{method} {path} failed: {e}. Retrying in {delay}s")
                time.sleep(delay)
                continue

            reported = parse_wait_seconds(response.headers)
            if not retries_left:
                raise RateLimitError("Rate limit exceeded after max retries", wait_seconds=reported)
            delay = self._pacer.retry_delay(attempt, reported)
            logger.warning(f"Rate limited (429). Backoff: {delay}s (attempt {attempt + 1})")
            time.sleep(delay)

        raise RequestFailedError(f"Failed to {method} {path}: {last_error}")

    @staticmethod
    def _decode(response, path: str) -> dict | list:
        """Map a non-429 response to JSON or an exception.

        Raises requests.HTTPError for 5xx so the caller can decide on a retry.
        """
        if response.status_code in (401, 403):
            raise RequestFailedError(
                f"Not authorized ({response.status_code}): {path}",
                status_code=response.status_code,
            )
        if response.status_code == 404:
            raise RequestFailedError(f"Not found: {path}", status_code=404)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(f"Reddit returned a non-JSON body for {path}: {e}")
